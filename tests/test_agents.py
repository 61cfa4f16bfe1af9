import pytest

from retro_tycoon.agents.competitors import CompetitorAI, load_competitors
from retro_tycoon.agents.player import PlayerAgent, load_strategy
from retro_tycoon.agents.projects import (
    ResearchProjectService,
    available_research_paths,
)
from retro_tycoon.agents.research import CustomChipGenerator
from retro_tycoon.catalog.hardware import HardwareCatalog
from retro_tycoon.config.loader import load_market_definition, load_simulation_config
from retro_tycoon.generators.static_pool import NamePool
from retro_tycoon.product.core import Competitor, CustomChip, ModelStatus
from retro_tycoon.simulation.rng import SequenceRandomSource
from retro_tycoon.simulation.state import GameState


@pytest.fixture(scope="module")
def config() -> dict:
    return load_simulation_config()


@pytest.fixture(scope="module")
def market() -> dict:
    return load_market_definition()


@pytest.fixture(scope="module")
def name_pool() -> NamePool:
    return NamePool(seed=7, pool_sizes={"model_names": 50, "reporters": 20, "cities": 10})


def _state(config, market, year=1983, quarter=1) -> GameState:
    state = GameState.new_game("Retro Computing", config, market)
    state.year, state.quarter = year, quarter
    return state


# --- Competitor AI ---


def test_load_competitors(market):
    rivals = load_competitors(market)
    assert rivals
    assert all(r.share_anchors for r in rivals)
    assert all(r.models for r in rivals)


def test_share_moves_at_most_two_points(config, market, name_pool):
    ai = CompetitorAI(config, market, SequenceRandomSource([0.99]), name_pool)
    assert ai.step_share(10.0, 30.0) == pytest.approx(12.0)
    assert ai.step_share(10.0, 0.0) == pytest.approx(8.0)
    assert ai.step_share(10.0, 11.0) == pytest.approx(11.0)
    assert ai.step_share(0.5, 0.0) == pytest.approx(0.1)


def test_historical_anchor_holds_nearest_year():
    rival = Competitor(
        id="c", name="C", market_share=10, reputation=50,
        marketing_budget=0, development_budget=0,
        share_anchors={1983: 20.0, 1986: 12.0},
    )
    assert CompetitorAI.historical_anchor(rival, 1983) == 20.0
    assert CompetitorAI.historical_anchor(rival, 1980) == 20.0
    assert CompetitorAI.historical_anchor(rival, 1992) == 12.0


def test_player_share_discounts_target(config, market, name_pool):
    ai = CompetitorAI(config, market, SequenceRandomSource([0.99]), name_pool)
    rival = load_competitors(market)[0]
    full = ai.target_share(rival, 1985, 0.0)
    assert ai.target_share(rival, 1985, 50.0) == pytest.approx(full / 2)


def test_update_releases_in_q1_and_accrues_units(config, market, name_pool):
    rivals = load_competitors(market)
    before_models = sum(len(c.models) for c in rivals)
    before_units = sum(c.total_units_sold for c in rivals)
    ai = CompetitorAI(config, market, SequenceRandomSource([0.0]), name_pool)

    update = ai.update(rivals, 1984, 1, player_share=5.0)
    assert len(update.releases) == len(rivals)
    assert sum(len(c.models) for c in rivals) == before_models + len(rivals)
    assert sum(c.total_units_sold for c in rivals) >= before_units
    for c in rivals:
        assert abs(update.share_changes[c.id]) <= 2.0 + 1e-9
        assert c.market_share >= 0.1


def test_off_season_release_less_likely(config, market, name_pool):
    ai = CompetitorAI(config, market, SequenceRandomSource([0.5]), name_pool)
    rival = load_competitors(market)[0]
    assert ai.release_probability(rival, 3) < ai.release_probability(rival, 1)


# --- Budget research roll ---


def test_unlock_chance_capped(config):
    gen = CustomChipGenerator(config, SequenceRandomSource([0.5]))
    assert gen.unlock_chance(0) == 0.0
    assert gen.unlock_chance(50_000) == pytest.approx(0.02)
    assert gen.unlock_chance(10_000_000) == pytest.approx(0.25)


def test_roll_produces_better_cheaper_chip(config):
    gen = CustomChipGenerator(config, SequenceRandomSource([0.0]))
    chip = gen.roll(100_000, 1985, 1, [])
    assert chip is not None
    assert chip.type == "gpu"
    assert chip.id == "custom-gpu-1985-1"
    assert chip.performance == 55
    assert chip.cost == 83
    assert chip.exclusive_to_player


def test_roll_respects_type_cap(config):
    gen = CustomChipGenerator(config, SequenceRandomSource([0.0]))
    owned = [
        CustomChip(f"c{i}", t, f"Chip {i}", 50, 50, "", 1984, 1)
        for i, t in enumerate(["gpu"] * 3 + ["sound"] * 3)
    ]
    assert gen.eligible_types(owned[:3]) == ["sound"]
    assert gen.roll(1_000_000, 1986, 1, owned) is None


def test_roll_misses_above_chance(config):
    gen = CustomChipGenerator(config, SequenceRandomSource([0.5]))
    assert gen.roll(10_000_000, 1986, 1, []) is None


# --- Research projects ---


def test_research_paths_open_over_time():
    assert {p.type for p in available_research_paths(1983)} == {"gpu", "sound"}
    assert {p.type for p in available_research_paths(1984)} == {"gpu", "sound", "case"}
    assert {p.type for p in available_research_paths(1985)} == {"gpu", "sound", "case", "cpu"}


def test_project_completes_with_two_year_exclusivity(config, market):
    catalog = HardwareCatalog()
    service = ResearchProjectService(SequenceRandomSource([0.0]), catalog, config)
    state = _state(config, market)
    cash = state.company.cash

    project = service.start_project(state, "gpu")
    assert project.total_cost == 125_000
    assert service.invest(state, project.id, 100_000) is None
    assert project.progress == pytest.approx(80.0)
    assert state.company.cash == cash
    assert state.pending_project_spend == 100_000

    component = service.invest(state, project.id, project.remaining)
    assert component is not None
    assert state.pending_project_spend == project.total_cost
    assert project.completed
    assert (component.exclusive_until_year, component.exclusive_until_quarter) == (1985, 1)
    assert catalog.get_component("gpu", component.name).exclusive
    assert component in state.exclusive_components

    state.year, state.quarter = 1985, 1
    assert service.exclusive_components(state) == [component]
    state.quarter = 2
    assert service.exclusive_components(state) == []


def test_project_errors(config, market):
    service = ResearchProjectService(SequenceRandomSource([0.0]), None, config)
    state = _state(config, market)
    with pytest.raises(ValueError):
        service.start_project(state, "cpu")
    with pytest.raises(KeyError):
        service.invest(state, "project-missing", 1000)

    project = service.start_project(state, "sound")
    with pytest.raises(ValueError):
        service.invest(state, project.id, 0)
    service.invest(state, project.id, project.total_cost)
    with pytest.raises(ValueError):
        service.invest(state, project.id, 1000)
    assert service.active_projects(state) == []


# --- Player agent ---


def test_unknown_strategy(config):
    with pytest.raises(KeyError):
        load_strategy(config, "reckless")


def test_budget_scaled_to_cash(config, market):
    player = PlayerAgent(
        load_strategy(config, "balanced"), HardwareCatalog(), config, SequenceRandomSource([0.5])
    )
    state = _state(config, market)
    assert player.plan_budget(state).total == pytest.approx(60_000)
    state.company.cash = 30_000
    budget = player.plan_budget(state)
    assert budget.total == pytest.approx(30_000)
    assert budget.marketing == pytest.approx(10_000)
    state.company.cash = -500
    assert player.plan_budget(state).total == 0


def test_player_designs_first_model(config, market):
    player = PlayerAgent(
        load_strategy(config, "aggressive"), HardwareCatalog(), config, SequenceRandomSource([0.5])
    )
    state = _state(config, market)
    actions = player.act(state)
    assert actions == ["designed model-1"]
    model = state.models[0]
    assert model.status == ModelStatus.DEVELOPMENT
    assert model.price > 0
    assert model.case is not None and model.case.type == "gamer"
    assert len(player.test_reports) == 1

    # Still in development: no second design
    assert player.act(state) == []
