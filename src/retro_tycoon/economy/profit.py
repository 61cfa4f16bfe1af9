from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ProfitBreakdown:
    """
    Per-model quarter P&L.

    net_profit is derived from the rounded cost lines, so the identity
    net == revenue - (bom + development + marketing + production + overhead)
    holds exactly.
    """

    revenue: float
    bom_costs: float
    development_costs: float
    marketing_costs: float
    production_costs: float
    fixed_overhead: float

    @property
    def total_costs(self) -> float:
        return (
            self.bom_costs
            + self.development_costs
            + self.marketing_costs
            + self.production_costs
            + self.fixed_overhead
        )

    @property
    def net_profit(self) -> float:
        return self.revenue - self.total_costs

    @property
    def gross_profit(self) -> float:
        return self.revenue - self.bom_costs

    @property
    def profit_margin(self) -> float:
        if self.revenue <= 0:
            return 0.0
        return self.net_profit / self.revenue * 100

    def to_dict(self) -> dict[str, float]:
        return {
            "revenue": self.revenue,
            "bom_costs": self.bom_costs,
            "development_costs": self.development_costs,
            "marketing_costs": self.marketing_costs,
            "production_costs": self.production_costs,
            "fixed_overhead": self.fixed_overhead,
            "gross_profit": self.gross_profit,
            "net_profit": self.net_profit,
            "profit_margin": self.profit_margin,
        }


def calculate_profit_breakdown(
    units_sold: int,
    price: float,
    bom_cost_per_unit: float,
    development_cost: float,
    marketing_budget: float,
    config: dict[str, Any] | None = None,
) -> ProfitBreakdown:
    """
    Revenue minus every cost category for one model in one quarter.

    Development cost is amortized over roughly eight quarters' worth of the
    current unit rate and capped at a share of the selling price. The
    marketing budget is spread over the units sold, so it is only booked
    when something sold.
    """
    profit_config = (config or {}).get("simulation_parameters", {}).get("profit", {})
    production_rate = float(profit_config.get("production_cost_rate", 0.08))
    overhead_per_unit = float(profit_config.get("overhead_per_unit", 50))
    lifetime_quarters = int(profit_config.get("amortization_quarters", 8))
    dev_cap = float(profit_config.get("dev_cost_price_cap", 0.1))

    units = max(0, int(units_sold))
    revenue = units * price
    bom_costs = round(bom_cost_per_unit * units)

    if units > 0:
        dev_per_unit = min(price * dev_cap, development_cost / max(1, units * lifetime_quarters))
        development_costs = round(dev_per_unit * units)
        marketing_costs = round(marketing_budget)
    else:
        development_costs = 0
        marketing_costs = 0

    production_costs = round(bom_costs * production_rate)
    fixed_overhead = units * overhead_per_unit

    return ProfitBreakdown(
        revenue=revenue,
        bom_costs=bom_costs,
        development_costs=development_costs,
        marketing_costs=marketing_costs,
        production_costs=production_costs,
        fixed_overhead=fixed_overhead,
    )
