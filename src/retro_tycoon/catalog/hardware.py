"""
Hardware catalog: which parts exist, when they appear, and their baseline
cost/performance.

Custom chips produced by research are registered into the same lookup so
the cost, demand and scoring engines treat them like any other part.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from retro_tycoon.config.loader import load_hardware_catalog
from retro_tycoon.product.core import quarters_elapsed

if TYPE_CHECKING:
    from retro_tycoon.product.core import (
        CaseSpec,
        ComputerModel,
        CustomChip,
        ExclusiveComponent,
    )

logger = logging.getLogger(__name__)

COMPONENT_CATEGORIES = ("cpu", "gpu", "memory", "sound", "storage", "display")
CATEGORY_ALIASES = {"ram": "memory"}

DEFAULT_COSTS = {
    "cpu": 50.0,
    "gpu": 30.0,
    "memory": 40.0,
    "sound": 5.0,
    "storage": 50.0,
    "display": 50.0,
    "accessory": 50.0,
    "case": 80.0,
}
DEFAULT_PERFORMANCE = {
    "cpu": 20.0,
    "gpu": 15.0,
    "memory": 10.0,
    "sound": 5.0,
    "storage": 10.0,
    "display": 10.0,
}


@dataclass(frozen=True)
class Component:
    name: str
    category: str
    performance: float
    cost: float
    year: int
    quarter: int
    exclusive: bool = False

    def is_available(self, year: int, quarter: int) -> bool:
        return quarters_elapsed(self.year, self.quarter, year, quarter) >= 0


def _normalize(category: str) -> str:
    return CATEGORY_ALIASES.get(category, category)


class HardwareCatalog:
    """Time-gated lookup of components, baseline costs and performance."""

    def __init__(self, catalog: dict[str, Any] | None = None) -> None:
        data = catalog if catalog is not None else load_hardware_catalog()

        self.default_costs = {**DEFAULT_COSTS, **data.get("default_costs", {})}
        self.default_performance = {
            **DEFAULT_PERFORMANCE,
            **data.get("default_performance", {}),
        }
        self.case_types: dict[str, dict[str, float]] = data.get("case_types", {})

        self._components: dict[str, dict[str, Component]] = {
            c: {} for c in COMPONENT_CATEGORIES
        }
        for category, entries in data.get("components", {}).items():
            category = _normalize(category)
            for e in entries:
                self._add(
                    Component(
                        name=e["name"],
                        category=category,
                        performance=float(e["performance"]),
                        cost=float(e["cost"]),
                        year=int(e["year"]),
                        quarter=int(e["quarter"]),
                    )
                )

    def _add(self, component: Component) -> None:
        self._components.setdefault(component.category, {})[component.name] = component

    def register_custom(self, chip: CustomChip | ExclusiveComponent) -> Component | None:
        """Make a research result resolvable by name. Cases are not catalog parts."""
        category = _normalize(chip.type)
        if category not in COMPONENT_CATEGORIES:
            return None
        component = Component(
            name=chip.name,
            category=category,
            performance=float(chip.performance),
            cost=float(chip.cost),
            year=chip.developed_year,
            quarter=chip.developed_quarter,
            exclusive=True,
        )
        self._add(component)
        logger.debug("Registered custom %s part %s", category, chip.name)
        return component

    # --- Lookup ---

    def get_component(self, category: str, name: str | None) -> Component | None:
        if not name:
            return None
        return self._components.get(_normalize(category), {}).get(name)

    def lookup(self, name: str) -> Component | None:
        """Find a part by name regardless of category."""
        for parts in self._components.values():
            if name in parts:
                return parts[name]
        return None

    def performance(self, category: str, name: str | None) -> float:
        component = self.get_component(category, name)
        if component is None:
            return self.default_performance.get(_normalize(category), 10.0)
        return component.performance

    def cost(self, category: str, name: str | None) -> float:
        component = self.get_component(category, name)
        if component is None:
            if name:
                logger.debug("Unknown %s part %r, using default cost", category, name)
            return self.default_costs.get(_normalize(category), 0.0)
        return component.cost

    def accessory_cost(self, name: str) -> float:
        component = self.lookup(name)
        return component.cost if component else self.default_costs["accessory"]

    def case_cost(self, case: CaseSpec | None) -> float:
        if case is None:
            return self.default_costs["case"]
        return float(case.price)

    def all_components(self) -> list[Component]:
        return [
            c
            for category in self._components
            for c in sorted(
                self._components[category].values(),
                key=lambda c: (c.year, c.quarter, c.name),
            )
        ]

    # --- Availability ---

    def available(self, category: str, year: int, quarter: int) -> list[Component]:
        parts = self._components.get(_normalize(category), {}).values()
        return sorted(
            (c for c in parts if c.is_available(year, quarter)),
            key=lambda c: (c.year, c.quarter, c.name),
        )

    def newly_available(self, year: int, quarter: int) -> list[Component]:
        """Parts whose release falls exactly on this quarter."""
        fresh = []
        for parts in self._components.values():
            fresh.extend(
                c for c in parts.values()
                if c.year == year and c.quarter == quarter and not c.exclusive
            )
        return sorted(fresh, key=lambda c: (c.category, c.name))

    def best_available(
        self, category: str, year: int, quarter: int, include_exclusive: bool = False
    ) -> Component | None:
        candidates = [
            c for c in self.available(category, year, quarter)
            if include_exclusive or not c.exclusive
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda c: c.performance)

    # --- Aggregates ---

    def average_performance(self, model: ComputerModel) -> float:
        """Mean of CPU/GPU/RAM/sound performance, used as headline performance."""
        values = [
            self.performance("cpu", model.cpu),
            self.performance("gpu", model.gpu),
            self.performance("memory", model.ram),
            self.performance("sound", model.sound),
        ]
        return round(sum(values) / len(values))

    def baseline_bom(self, model: ComputerModel) -> float:
        """Undecayed per-unit cost of a configuration."""
        total = sum(self.cost(cat, name) for cat, name in model.components().items())
        total += sum(self.accessory_cost(a) for a in model.accessories)
        total += self.case_cost(model.case)
        return total
