from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from retro_tycoon.simulation.orchestrator import QuarterReport
    from retro_tycoon.simulation.state import GameState

MIN_SAMPLES_FOR_VARIANCE = 2


@dataclass
class WelfordAccumulator:
    """
    Implements Welford's online algorithm for calculating mean and variance
    in a single pass (O(1) update).
    """

    count: int = 0
    mean: float = 0.0
    m2: float = 0.0  # Sum of squares of differences from the current mean

    def update(self, new_value: float) -> None:
        self.count += 1
        delta = new_value - self.mean
        self.mean += delta / self.count
        delta2 = new_value - self.mean
        self.m2 += delta * delta2

    @property
    def variance(self) -> float:
        if self.count < MIN_SAMPLES_FOR_VARIANCE:
            return 0.0
        return self.m2 / (self.count - 1)

    @property
    def std_dev(self) -> float:
        return float(np.sqrt(self.variance))


class CampaignMonitor:
    """
    Streaming KPI tracker over a campaign's quarter reports, flagging when
    the averages leave plausible ranges.
    """

    def __init__(self, config: dict[str, Any]):
        self.config = config.get("simulation_parameters", {}).get("validation", {})

        self.revenue_tracker = WelfordAccumulator()
        self.units_tracker = WelfordAccumulator()
        self.margin_tracker = WelfordAccumulator()
        self.share_tracker = WelfordAccumulator()

        self.margin_range = self.config.get("profit_margin_range", [-50.0, 60.0])
        self.max_share = self.config.get("max_market_share", 60.0)

    def record(self, report: QuarterReport) -> None:
        # Quarters with nothing on sale say nothing about the market
        if not report.model_results:
            return
        self.revenue_tracker.update(report.revenue)
        self.units_tracker.update(report.units_sold)
        self.margin_tracker.update(report.profit_margin)
        self.share_tracker.update(report.market_share)

    def get_report(self) -> dict[str, Any]:
        return {
            "revenue": {
                "mean": self.revenue_tracker.mean,
                "std": self.revenue_tracker.std_dev,
                "quarters": self.revenue_tracker.count,
            },
            "units_sold": {
                "mean": self.units_tracker.mean,
                "std": self.units_tracker.std_dev,
            },
            "profit_margin": {
                "mean": self.margin_tracker.mean,
                "std": self.margin_tracker.std_dev,
                "target": self.margin_range,
                "status": (
                    "OK"
                    if self.margin_range[0]
                    <= self.margin_tracker.mean
                    <= self.margin_range[1]
                    else "DRIFT"
                ),
            },
            "market_share": {
                "mean": self.share_tracker.mean,
                "max": self.max_share,
                "status": "OK" if self.share_tracker.mean <= self.max_share else "HIGH",
            },
        }


class EconomyAuditor:
    """Checks accounting identities and range limits on every quarter."""

    def __init__(self, config: dict[str, Any]):
        validation = config.get("simulation_parameters", {}).get("validation", {})
        self.tolerance = float(validation.get("profit_tolerance", 1.0))
        obsolescence = config.get("simulation_parameters", {}).get("obsolescence", {})
        self.obsolescence_floor = float(obsolescence.get("floor", 0.2))

    def check_profit_identity(self, report: QuarterReport) -> list[str]:
        violations: list[str] = []
        for result in report.model_results:
            p = result.profit
            expected = p.revenue - (
                p.bom_costs
                + p.development_costs
                + p.marketing_costs
                + p.production_costs
                + p.fixed_overhead
            )
            if abs(p.net_profit - expected) > self.tolerance:
                violations.append(
                    f"{result.model_id}: net {p.net_profit:.2f} != {expected:.2f}"
                )
            if abs(result.revenue - result.units_sold * result.price) > self.tolerance:
                violations.append(
                    f"{result.model_id}: revenue {result.revenue:.2f} != units x price"
                )
        return violations

    def check_ranges(self, report: QuarterReport, state: GameState) -> list[str]:
        violations: list[str] = []
        company = state.company
        if not 0 <= company.reputation <= 100:
            violations.append(f"Reputation out of range: {company.reputation}")
        if not 0 <= company.market_share <= 100:
            violations.append(f"Market share out of range: {company.market_share}")
        for model_id, info in report.obsolescence.items():
            if info.factor < self.obsolescence_floor:
                violations.append(f"{model_id}: obsolescence {info.factor} below floor")
        for result in report.model_results:
            if result.units_sold < 0:
                violations.append(f"{result.model_id}: negative units")
        return violations

    def audit(self, report: QuarterReport, state: GameState) -> list[str]:
        return self.check_profit_identity(report) + self.check_ranges(report, state)
