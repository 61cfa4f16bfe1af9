"""
Bill-of-materials cost with per-category price decay.

Component prices fall geometrically from a fixed epoch (the first quarter
of the campaign), never below a fraction of their launch price.
Accessories and the case decay more slowly with a higher floor.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from retro_tycoon.product.core import quarters_elapsed

if TYPE_CHECKING:
    from retro_tycoon.catalog.hardware import HardwareCatalog
    from retro_tycoon.product.core import ComputerModel

logger = logging.getLogger(__name__)

DEFAULT_DECAY_RATES = {
    "cpu": 0.03,
    "gpu": 0.04,
    "memory": 0.05,
    "sound": 0.02,
    "storage": 0.03,
    "display": 0.025,
}


class CostModel:
    """Current per-unit BOM cost of a configuration at a point in game time."""

    def __init__(
        self, catalog: HardwareCatalog, config: dict[str, Any] | None = None
    ) -> None:
        self.catalog = catalog
        sim_params = (config or {}).get("simulation_parameters", {})
        cost_config = sim_params.get("cost", {})
        calendar = sim_params.get("calendar", {})

        self.decay_rates = {**DEFAULT_DECAY_RATES, **cost_config.get("decay_rates", {})}
        self.component_floor = float(cost_config.get("component_floor", 0.3))
        self.accessory_rate = float(cost_config.get("accessory_decay_rate", 0.02))
        self.accessory_floor = float(cost_config.get("accessory_floor", 0.5))
        self.epoch_year = int(calendar.get("start_year", 1983))
        self.epoch_quarter = int(calendar.get("start_quarter", 1))

    def quarters_since_epoch(self, year: int, quarter: int) -> int:
        return max(0, quarters_elapsed(self.epoch_year, self.epoch_quarter, year, quarter))

    def decayed_component_cost(self, category: str, base_cost: float, t: int) -> float:
        rate = self.decay_rates.get(category, 0.0)
        return max(base_cost * self.component_floor, base_cost * (1 - rate) ** t)

    def decayed_accessory_cost(self, base_cost: float, t: int) -> float:
        return max(
            base_cost * self.accessory_floor, base_cost * (1 - self.accessory_rate) ** t
        )

    def cost_breakdown(
        self, model: ComputerModel, year: int, quarter: int
    ) -> dict[str, float]:
        """Decayed cost per category plus the accessory/case block."""
        t = self.quarters_since_epoch(year, quarter)
        breakdown = {
            category: self.decayed_component_cost(
                category, self.catalog.cost(category, name), t
            )
            for category, name in model.components().items()
        }
        slow_base = sum(self.catalog.accessory_cost(a) for a in model.accessories)
        slow_base += self.catalog.case_cost(model.case)
        breakdown["accessories_and_case"] = self.decayed_accessory_cost(slow_base, t)
        return breakdown

    def calculate_current_cost(self, model: ComputerModel, year: int, quarter: int) -> int:
        """Total current BOM per unit, rounded to whole currency units."""
        breakdown = self.cost_breakdown(model, year, quarter)
        total = round(sum(breakdown.values()))
        logger.debug(
            "BOM %s @ %dQ%d: base=%.0f current=%d",
            model.id,
            year,
            quarter,
            self.catalog.baseline_bom(model),
            total,
        )
        return total

    def get_decay_stats(self, year: int, quarter: int) -> dict[str, Any]:
        """Discount (in percent of launch price) per category for diagnostics."""
        t = self.quarters_since_epoch(year, quarter)
        discounts = {
            category: round((1 - self.decayed_component_cost(category, 1.0, t)) * 100, 1)
            for category in self.decay_rates
        }
        average = sum(discounts.values()) / len(discounts) if discounts else 0.0
        return {
            "quarters_since_start": t,
            "average_discount": round(average, 1),
            "component_discounts": discounts,
        }
