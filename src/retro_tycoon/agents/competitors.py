"""
Competitor AI.

Rival shares track a year-indexed historical anchor, discounted by the
player's share, moving at most a couple of points per quarter. Rivals
launch new models (mostly in Q1) priced and rated off a yearly baseline
scaled by their premium/budget positioning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from retro_tycoon.product.core import Competitor, CompetitorModel

if TYPE_CHECKING:
    from retro_tycoon.generators.static_pool import NamePool
    from retro_tycoon.simulation.rng import RandomSource

logger = logging.getLogger(__name__)

BASE_YEAR = 1983


def load_competitors(market_definition: dict[str, Any]) -> list[Competitor]:
    """Build the opening rival roster from the market definition."""
    competitors = []
    for c in market_definition.get("competitors", []):
        competitors.append(
            Competitor(
                id=c["id"],
                name=c["name"],
                market_share=float(c["market_share"]),
                reputation=float(c["reputation"]),
                marketing_budget=float(c.get("marketing_budget", 0)),
                development_budget=float(c.get("development_budget", 0)),
                models=[
                    CompetitorModel(
                        name=m["name"],
                        price=float(m["price"]),
                        performance=float(m["performance"]),
                        units_sold=int(m["units_sold"]),
                        release_year=int(m["release_year"]),
                        release_quarter=int(m["release_quarter"]),
                    )
                    for m in c.get("models", [])
                ],
                price_multiplier=float(c.get("price_multiplier", 1.0)),
                performance_multiplier=float(c.get("performance_multiplier", 1.0)),
                release_propensity=float(c.get("release_propensity", 0.3)),
                share_anchors={
                    int(y): float(s) for y, s in c.get("share_anchors", {}).items()
                },
            )
        )
    return competitors


@dataclass
class CompetitorRelease:
    competitor_id: str
    competitor_name: str
    model: CompetitorModel


@dataclass
class CompetitorUpdate:
    releases: list[CompetitorRelease] = field(default_factory=list)
    share_changes: dict[str, float] = field(default_factory=dict)


class CompetitorAI:
    """Evolves rival market shares and product lines once per quarter."""

    def __init__(
        self,
        config: dict[str, Any],
        market_definition: dict[str, Any],
        rng: RandomSource,
        name_pool: NamePool,
    ) -> None:
        self.rng = rng
        self.name_pool = name_pool

        comp_config = config.get("simulation_parameters", {}).get("competitors", {})
        self.max_step = float(comp_config.get("max_share_step", 2.0))
        self.share_floor = float(comp_config.get("share_floor", 0.1))
        self.off_season_factor = float(comp_config.get("off_season_release_factor", 0.35))
        self.units_per_point = float(comp_config.get("units_per_share_point", 400))
        self.active_model_count = int(comp_config.get("active_model_count", 3))

        baseline = market_definition.get("rival_model_baseline", {})
        self.base_price = float(baseline.get("price", 1200))
        self.price_decline = float(baseline.get("price_decline_per_year", 0.03))
        self.base_performance = float(baseline.get("performance", 45))
        self.performance_gain = float(baseline.get("performance_gain_per_year", 5))

    # --- Market share ---

    @staticmethod
    def historical_anchor(competitor: Competitor, year: int) -> float:
        """Anchor for the year, holding the nearest known year outside the table."""
        anchors = competitor.share_anchors
        if not anchors:
            return competitor.market_share
        if year in anchors:
            return anchors[year]
        nearest = min(anchors, key=lambda y: abs(y - year))
        return anchors[nearest]

    def target_share(self, competitor: Competitor, year: int, player_share: float) -> float:
        discount = (100 - max(0.0, min(100.0, player_share))) / 100
        return self.historical_anchor(competitor, year) * discount

    def step_share(self, current: float, target: float) -> float:
        step = max(-self.max_step, min(self.max_step, target - current))
        return max(self.share_floor, current + step)

    # --- Product launches ---

    def release_probability(self, competitor: Competitor, quarter: int) -> float:
        if quarter == 1:
            return competitor.release_propensity
        return competitor.release_propensity * self.off_season_factor

    def baseline_price(self, year: int) -> float:
        return self.base_price * max(0.4, 1 - self.price_decline * (year - BASE_YEAR))

    def baseline_performance(self, year: int) -> float:
        return self.base_performance + self.performance_gain * (year - BASE_YEAR)

    def maybe_release(
        self, competitor: Competitor, year: int, quarter: int
    ) -> CompetitorModel | None:
        if self.rng.random() >= self.release_probability(competitor, quarter):
            return None
        price = self.baseline_price(year) * competitor.price_multiplier
        price *= 0.85 + self.rng.random() * 0.3
        performance = self.baseline_performance(year) * competitor.performance_multiplier
        performance *= 0.9 + self.rng.random() * 0.2

        taken = {m.name for m in competitor.models}
        return CompetitorModel(
            name=self.name_pool.rival_model_name(competitor.name, self.rng, taken),
            price=float(round(price)),
            performance=float(min(100, round(performance))),
            units_sold=0,
            release_year=year,
            release_quarter=quarter,
        )

    def accrue_units(self, competitor: Competitor) -> int:
        """Spread this quarter's sales over the rival's newest models."""
        active = competitor.models[-self.active_model_count:]
        if not active:
            return 0
        sold = 0
        for model in active:
            units = int(
                competitor.market_share
                * self.units_per_point
                * (0.7 + self.rng.random() * 0.6)
                / len(active)
            )
            model.units_sold += units
            sold += units
        return sold

    # --- Turn entry point ---

    def update(
        self,
        competitors: list[Competitor],
        year: int,
        quarter: int,
        player_share: float,
    ) -> CompetitorUpdate:
        """Mutates the given competitors in place and reports what changed."""
        update = CompetitorUpdate()
        for competitor in competitors:
            before = competitor.market_share
            target = self.target_share(competitor, year, player_share)
            competitor.market_share = self.step_share(before, target)
            update.share_changes[competitor.id] = competitor.market_share - before

            model = self.maybe_release(competitor, year, quarter)
            if model is not None:
                competitor.models.append(model)
                update.releases.append(
                    CompetitorRelease(competitor.id, competitor.name, model)
                )
                logger.info(
                    "%s releases %s at $%.0f (perf %.0f)",
                    competitor.name,
                    model.name,
                    model.price,
                    model.performance,
                )

            self.accrue_units(competitor)
        return update
