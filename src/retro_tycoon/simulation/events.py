from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from retro_tycoon.economy.demand import MarketModifiers

if TYPE_CHECKING:
    from retro_tycoon.simulation.rng import RandomSource


@dataclass(frozen=True)
class MarketEvent:
    id: str
    title: str
    description: str
    duration_quarters: int = 1
    market_growth: float = 0.0
    demand_shift: dict[str, float] = field(default_factory=dict)
    price_change: float = 0.0


@dataclass
class ActiveMarketEvent:
    event: MarketEvent
    started_year: int
    started_quarter: int
    remaining_quarters: int


class MarketEventManager:
    """Random market-wide events that shift segment demand and price tolerance."""

    def __init__(
        self,
        config: dict[str, Any],
        market_definition: dict[str, Any],
        rng: RandomSource,
    ) -> None:
        event_config = config.get("simulation_parameters", {}).get("events", {})
        self.enabled = event_config.get("enabled", True)
        self.trigger_chance = float(event_config.get("trigger_chance", 0.2))
        self.rng = rng

        self.events: list[MarketEvent] = []
        for e in market_definition.get("market_events", []):
            self.events.append(
                MarketEvent(
                    id=e["id"],
                    title=e.get("title", e["id"]),
                    description=e.get("description", ""),
                    duration_quarters=int(e.get("duration_quarters", 1)),
                    market_growth=float(e.get("market_growth", 0.0)),
                    demand_shift={
                        k: float(v) for k, v in e.get("demand_shift", {}).items()
                    },
                    price_change=float(e.get("price_change", 0.0)),
                )
            )

    def tick(self, active: list[ActiveMarketEvent]) -> list[ActiveMarketEvent]:
        """Age events carried over from last quarter, dropping expired ones."""
        remaining = []
        for a in active:
            left = a.remaining_quarters - 1
            if left > 0:
                remaining.append(
                    ActiveMarketEvent(a.event, a.started_year, a.started_quarter, left)
                )
        return remaining

    def check_trigger(self, year: int, quarter: int) -> ActiveMarketEvent | None:
        """Roll for a new event this quarter."""
        if not self.enabled or not self.events:
            return None
        if self.rng.random() >= self.trigger_chance:
            return None
        event = self.rng.choice(self.events)
        return ActiveMarketEvent(event, year, quarter, event.duration_quarters)

    @staticmethod
    def modifiers(active: list[ActiveMarketEvent]) -> MarketModifiers:
        growth = 0.0
        price = 0.0
        shift: dict[str, float] = {}
        for a in active:
            growth += a.event.market_growth
            price += a.event.price_change
            for segment, change in a.event.demand_shift.items():
                shift[segment] = shift.get(segment, 0.0) + change
        return MarketModifiers(market_growth=growth, demand_shift=shift, price_change=price)
