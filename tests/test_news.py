from retro_tycoon.config.loader import load_market_definition
from retro_tycoon.generators.news import NewsGenerator, NewsRegistry, simple_hash
from retro_tycoon.generators.static_pool import NamePool
from retro_tycoon.simulation.rng import SequenceRandomSource


def _generator(registry=None, market=None):
    return NewsGenerator(
        SequenceRandomSource([0.1, 0.6, 0.3]),
        registry if registry is not None else NewsRegistry(),
        market_definition=market,
    )


def test_simple_hash():
    assert simple_hash("") == "0"
    assert simple_hash("a") == "61"
    assert simple_hash("hello") == "5e918d2"
    assert len(simple_hash("x" * 500)) <= 8


def test_dedup_key_ignores_key_order():
    a = NewsRegistry.dedup_key("tech", 1985, 2, {"a": 1, "b": 2})
    b = NewsRegistry.dedup_key("tech", 1985, 2, {"b": 2, "a": 1})
    assert a == b
    assert a.startswith("tech_1985q2_")


def test_same_story_printed_once_per_session():
    gen = _generator()
    payload = {"hardware": ["Intel 80286"]}
    assert gen.generate("tech", 1985, 1, payload) is not None
    assert gen.generate("tech", 1985, 1, payload) is None
    # A different quarter is a different story
    assert gen.generate("tech", 1985, 2, payload) is not None


def test_sessions_do_not_share_dedup_state():
    first, second = _generator(), _generator()
    payload = {"company": "Commodore", "model": "Amiga"}
    assert first.generate("competitor", 1985, 3, payload) is not None
    assert second.generate("competitor", 1985, 3, payload) is not None


def test_registry_reset():
    registry = NewsRegistry()
    key = registry.mark_used("world", 1984, 1, None)
    assert key in registry
    assert len(registry) == 1
    registry.reset()
    assert len(registry) == 0


def test_competitor_story_names_the_release():
    item = _generator().competitor_news(1986, 1, {"company": "Atari", "model": "Atari ST"})
    assert "Atari" in item.headline
    assert item.category == "competitor"


def test_quarter_news_never_empty():
    gen = _generator()
    for _ in range(10):
        assert gen.generate_quarter_news(1990, 2)


def test_historical_headlines_printed_in_their_quarter():
    gen = _generator(market=load_market_definition())
    items = gen.generate_quarter_news(1984, 1)
    assert any(i.headline == "Apple unveils the Macintosh" for i in items)
    assert all(i.year == 1984 and i.quarter == 1 for i in items)
    again = gen.generate_quarter_news(1984, 1)
    assert not any(i.headline == "Apple unveils the Macintosh" for i in again)


def test_event_story_carries_impact():
    gen = _generator()
    event = {
        "id": "price_war",
        "title": "Price War",
        "description": "Prices fall.",
        "price_change": -0.15,
    }
    items = gen.generate_quarter_news(1985, 1, event=event)
    assert items[-1].headline == "Price War"
    assert items[-1].impact == {"price_change": -0.15}


def test_bylines_from_name_pool():
    pool = NamePool(seed=3, pool_sizes={"model_names": 5, "reporters": 5, "cities": 5})
    gen = NewsGenerator(SequenceRandomSource([0.2]), NewsRegistry(), pool)
    item = gen.world_news(1983, 1)
    assert item.byline in pool.reporters


def test_competitor_story_carries_a_dateline():
    pool = NamePool(seed=3, pool_sizes={"model_names": 5, "reporters": 5, "cities": 5})
    gen = NewsGenerator(SequenceRandomSource([0.4]), NewsRegistry(), pool)
    item = gen.competitor_news(1987, 2, {"company": "Commodore", "model": "Amiga 500"})
    dateline, _, body = item.content.partition(": ")
    assert dateline in {city.upper() for city in pool.cities}
    assert "Amiga 500" in body
