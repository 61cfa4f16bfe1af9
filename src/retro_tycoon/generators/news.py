"""
Quarterly newspaper content.

Deduplication lives in a NewsRegistry owned by one game session, keyed on
news type, quarter and a hash of the payload, so the same story is never
printed twice in a session and separate sessions never share state.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from retro_tycoon.generators.static_pool import NamePool
    from retro_tycoon.simulation.rng import RandomSource

NEWS_CATEGORIES = ("market", "tech", "competitor", "world")


def simple_hash(text: str) -> str:
    """32-bit rolling string hash (h * 31 + c), absolute value, first 8 hex digits."""
    h = 0
    for ch in text:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return format(abs(h), "x")[:8]


class NewsRegistry:
    """Per-session record of stories already printed."""

    def __init__(self) -> None:
        self._used: set[str] = set()

    @staticmethod
    def dedup_key(news_type: str, year: int, quarter: int, payload: Any) -> str:
        content = json.dumps(payload, sort_keys=True, default=str)
        return f"{news_type}_{year}q{quarter}_{simple_hash(content)}"

    def is_duplicate(self, news_type: str, year: int, quarter: int, payload: Any) -> bool:
        return self.dedup_key(news_type, year, quarter, payload) in self._used

    def mark_used(self, news_type: str, year: int, quarter: int, payload: Any) -> str:
        key = self.dedup_key(news_type, year, quarter, payload)
        self._used.add(key)
        return key

    def reset(self) -> None:
        self._used.clear()

    def __len__(self) -> int:
        return len(self._used)

    def __contains__(self, key: object) -> bool:
        return key in self._used


@dataclass
class NewsItem:
    id: str
    category: str
    headline: str
    content: str
    year: int
    quarter: int
    impact: dict[str, Any] = field(default_factory=dict)
    byline: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "headline": self.headline,
            "content": self.content,
            "year": self.year,
            "quarter": self.quarter,
            "impact": dict(self.impact),
            "byline": self.byline,
        }


MARKET_TEMPLATES = [
    ("Computer market keeps growing", "Retailers report record demand for home computers this quarter."),
    ("Price war hits the shelves", "Manufacturers cut prices to defend their market share."),
    ("New buyers discover computers", "Families and small offices join the computer market."),
    ("Retail chains expand computer aisles", "Department stores dedicate more floor space to computers."),
    ("Software sales lift hardware", "A wave of new titles gives buyers a reason to upgrade."),
]
TECH_TEMPLATES = [
    ("Chip makers announce a breakthrough", "New parts promise more performance at lower cost."),
    ("Graphics take center stage", "Sharper, more colorful displays raise the bar for games."),
    ("Memory prices fall", "Cheaper RAM makes larger configurations affordable."),
    ("Better sound for the home", "Sound chips turn computers into music machines."),
    ("Storage capacity doubles", "Disk drives hold more than ever before."),
]
COMPETITOR_TEMPLATES = [
    ("{company} expands its line-up", "{company} launches the {model} to take on the market."),
    ("{company} pushes abroad", "The {model} leads {company}'s international campaign."),
    ("Rumors swirl around {company}", "Analysts see the {model} as a make-or-break product."),
]
WORLD_TEMPLATES = [
    ("New trade agreements signed", "Lower tariffs make imported components cheaper."),
    ("Schools bring computers into the classroom", "Education programs fund computer labs nationwide."),
    ("Economy picks up", "Consumer confidence rises for the third month running."),
    ("Computers become part of pop culture", "Films and music embrace the digital age."),
]


class NewsGenerator:
    """Builds the quarter's news items, consulting the session registry."""

    def __init__(
        self,
        rng: RandomSource,
        registry: NewsRegistry,
        name_pool: NamePool | None = None,
        market_definition: dict[str, Any] | None = None,
    ) -> None:
        self.rng = rng
        self.registry = registry
        self.name_pool = name_pool
        self.historical = (market_definition or {}).get("historical_headlines", [])

    def _byline(self) -> str | None:
        if self.name_pool is None:
            return None
        return self.name_pool.pick("reporters", self.rng)

    def _emit(
        self,
        news_type: str,
        year: int,
        quarter: int,
        payload: Any,
        headline: str,
        content: str,
        impact: dict[str, Any] | None = None,
    ) -> NewsItem:
        key = self.registry.mark_used(news_type, year, quarter, payload)
        return NewsItem(
            id=f"{year}q{quarter}_{news_type}_{key}",
            category=news_type,
            headline=headline,
            content=content,
            year=year,
            quarter=quarter,
            impact=impact or {},
            byline=self._byline(),
        )

    def generate(self, news_type: str, year: int, quarter: int, payload: Any) -> NewsItem | None:
        """Single story of the given type, or None if it was already printed."""
        if self.registry.is_duplicate(news_type, year, quarter, payload):
            return None
        if news_type == "market":
            return self.market_news(year, quarter, payload)
        if news_type == "tech":
            return self.tech_news(year, quarter, payload)
        if news_type == "competitor":
            return self.competitor_news(year, quarter, payload)
        if news_type == "world":
            return self.world_news(year, quarter, payload)
        raise ValueError(f"Unknown news type: {news_type}")

    def market_news(self, year: int, quarter: int, payload: Any = None) -> NewsItem | None:
        if self.registry.is_duplicate("market", year, quarter, payload):
            return None
        index = self.rng.integers(0, len(MARKET_TEMPLATES))
        headline, content = MARKET_TEMPLATES[index]
        impacts: list[dict[str, Any]] = [
            {"market_growth": round(self.rng.random() * 0.1 + 0.05, 3)},
            {"price_change": round(-0.1 - self.rng.random() * 0.1, 3)},
            {"demand_shift": {"gamer": 0.15}},
            {"market_growth": 0.08},
            {"market_growth": 0.12},
        ]
        return self._emit("market", year, quarter, payload, headline, content, impacts[index])

    def tech_news(self, year: int, quarter: int, payload: Any = None) -> NewsItem | None:
        if self.registry.is_duplicate("tech", year, quarter, payload):
            return None
        index = self.rng.integers(0, len(TECH_TEMPLATES))
        headline, content = TECH_TEMPLATES[index]
        parts = (payload or {}).get("hardware") if isinstance(payload, dict) else None
        if parts:
            content = f"{content} New this quarter: {', '.join(parts)}."
        impacts: list[dict[str, Any]] = [
            {"market_growth": 0.15},
            {"demand_shift": {"gamer": 0.2}},
            {"demand_shift": {"business": 0.18}},
            {"market_growth": 0.1},
            {"market_growth": 0.13},
        ]
        return self._emit("tech", year, quarter, payload, headline, content, impacts[index])

    def competitor_news(self, year: int, quarter: int, payload: Any = None) -> NewsItem | None:
        if self.registry.is_duplicate("competitor", year, quarter, payload):
            return None
        headline, content = self.rng.choice(COMPETITOR_TEMPLATES)
        info = payload if isinstance(payload, dict) else {}
        company = info.get("company", "A rival")
        model = info.get("model", "new machine")
        content = content.format(company=company, model=model)
        if self.name_pool is not None:
            content = f"{self.name_pool.pick('cities', self.rng).upper()}: {content}"
        return self._emit(
            "competitor",
            year,
            quarter,
            payload,
            headline.format(company=company, model=model),
            content,
        )

    def world_news(self, year: int, quarter: int, payload: Any = None) -> NewsItem | None:
        if payload is None:
            payload = {"general": True}
        if self.registry.is_duplicate("world", year, quarter, payload):
            return None
        headline, content = self.rng.choice(WORLD_TEMPLATES)
        return self._emit("world", year, quarter, payload, headline, content)

    def historical_news(self, year: int, quarter: int) -> list[NewsItem]:
        items = []
        for entry in self.historical:
            if entry.get("year") != year or entry.get("quarter") != quarter:
                continue
            payload = {"historical": entry["id"]}
            category = entry.get("category", "world")
            if self.registry.is_duplicate(category, year, quarter, payload):
                continue
            impact = {}
            if "market_growth" in entry:
                impact["market_growth"] = entry["market_growth"]
            items.append(
                self._emit(
                    category, year, quarter, payload, entry["headline"], entry["content"], impact
                )
            )
        return items

    def fallback_news(self, year: int, quarter: int) -> list[NewsItem]:
        """First non-duplicate generic story; forced market story if all are used."""
        for news_type in NEWS_CATEGORIES:
            item = self.generate(news_type, year, quarter, {"fallback": news_type})
            if item is not None:
                return [item]
        forced = self.market_news(year, quarter, {"fallback": "forced", "seq": len(self.registry)})
        return [forced] if forced is not None else []

    def generate_quarter_news(
        self,
        year: int,
        quarter: int,
        *,
        market_data: dict[str, Any] | None = None,
        new_hardware: list[str] | None = None,
        competitor_releases: list[dict[str, str]] | None = None,
        event: dict[str, Any] | None = None,
    ) -> list[NewsItem]:
        items = self.historical_news(year, quarter)

        if market_data is not None:
            item = self.market_news(year, quarter, {"market_data": market_data})
            if item:
                items.append(item)
        if new_hardware:
            item = self.tech_news(year, quarter, {"hardware": list(new_hardware)})
            if item:
                items.append(item)
        for release in competitor_releases or []:
            item = self.competitor_news(year, quarter, release)
            if item:
                items.append(item)
        if event is not None:
            payload = {"event": event["id"]}
            if not self.registry.is_duplicate("market", year, quarter, payload):
                items.append(
                    self._emit(
                        "market",
                        year,
                        quarter,
                        payload,
                        event["title"],
                        event["description"],
                        {k: v for k, v in event.items() if k in ("market_growth", "price_change", "demand_shift")},
                    )
                )

        return items or self.fallback_news(year, quarter)
