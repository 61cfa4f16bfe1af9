from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from retro_tycoon.economy.demand import (
    BASE_YEAR,
    AppealCalculator,
    build_segments,
    price_acceptance,
    price_position,
    tech_trends,
)
from retro_tycoon.economy.profit import calculate_profit_breakdown

if TYPE_CHECKING:
    from retro_tycoon.catalog.hardware import HardwareCatalog
    from retro_tycoon.economy.cost import CostModel
    from retro_tycoon.product.core import Competitor, ComputerModel

PRICE_POINTS = 20
MIN_MARKUP = 1.1
MAX_MARKUP = 4.0
SUGGESTED_MARKUP = 1.8
MAX_THREATS = 8


def year_factors(year: int) -> dict[str, float]:
    """Inflation and technology level relative to 1983."""
    years = year - BASE_YEAR
    return {
        "inflation": 1.0 + 0.04 * years,
        "tech_advancement": 0.8 + 0.1 * years,
    }


@dataclass(frozen=True)
class PricePoint:
    price: float
    expected_units: int
    expected_profit: float


@dataclass(frozen=True)
class PricingAnalysis:
    bom_cost: float
    suggested_price: float
    optimal_price: float
    points: list[PricePoint]


@dataclass(frozen=True)
class CompetitorThreat:
    company: str
    model_name: str
    price: float
    performance: float
    position: str
    threat_level: float


class PricingAnalyzer:
    """Deterministic what-if pricing and rival threat analysis for the player."""

    def __init__(
        self,
        catalog: HardwareCatalog,
        cost_model: CostModel,
        config: dict[str, Any] | None = None,
    ) -> None:
        self.catalog = catalog
        self.cost_model = cost_model
        self.config = config or {}
        self.appeal = AppealCalculator(catalog)
        demand_config = self.config.get("simulation_parameters", {}).get("demand", {})
        self.base_penetration = float(demand_config.get("base_penetration", 0.02))

    def expected_units(self, model: ComputerModel, price: float, year: int) -> int:
        """Noise-free unit estimate across active segments at a trial price."""
        trends = tech_trends(year)
        total = 0.0
        for segment in build_segments(year).values():
            if not segment.active:
                continue
            appeal = self.appeal.appeal(segment.name, model, trends)
            total += (
                segment.size
                * self.base_penetration
                * appeal
                / 100
                * price_acceptance(price, segment, appeal)
            )
        return int(math.floor(total))

    def optimal_pricing(
        self, model: ComputerModel, year: int, quarter: int, marketing_budget: float = 0.0
    ) -> PricingAnalysis:
        bom = self.cost_model.calculate_current_cost(model, year, quarter)
        points = []
        for raw in np.linspace(bom * MIN_MARKUP, bom * MAX_MARKUP, PRICE_POINTS):
            price = round(float(raw))
            units = self.expected_units(model, price, year)
            profit = calculate_profit_breakdown(
                units, price, bom, model.development_cost, marketing_budget, self.config
            )
            points.append(PricePoint(price, units, profit.net_profit))

        best = max(points, key=lambda p: p.expected_profit)
        return PricingAnalysis(
            bom_cost=bom,
            suggested_price=round(bom * SUGGESTED_MARKUP),
            optimal_price=best.price,
            points=points,
        )

    @staticmethod
    def analyze_competitors(
        model: ComputerModel, competitors: list[Competitor], year: int
    ) -> list[CompetitorThreat]:
        """Recent rival models ranked by value-for-money threat (top 8)."""
        our_value = model.performance / (model.price / 100) if model.price > 0 else 0.0
        threats = []
        for competitor in competitors:
            reputation_weight = min(2.0, competitor.reputation / 70)
            for rival in competitor.models:
                if rival.release_year < year - 1:
                    continue
                their_value = rival.performance / (rival.price / 100) if rival.price > 0 else 0.0
                if our_value > 0:
                    threat = min(100.0, their_value / our_value * reputation_weight * 50)
                else:
                    threat = 100.0
                threats.append(
                    CompetitorThreat(
                        company=competitor.name,
                        model_name=rival.name,
                        price=rival.price,
                        performance=rival.performance,
                        position=price_position(rival.price),
                        threat_level=round(threat, 1),
                    )
                )
        threats.sort(key=lambda t: t.threat_level, reverse=True)
        return threats[:MAX_THREATS]
