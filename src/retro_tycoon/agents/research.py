from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from retro_tycoon.product.core import CustomChip

if TYPE_CHECKING:
    from retro_tycoon.catalog.hardware import HardwareCatalog
    from retro_tycoon.simulation.rng import RandomSource

logger = logging.getLogger(__name__)

# Best retail part per year: (performance, cost)
MARKET_EQUIVALENTS = {
    "gpu": {
        1983: (25, 45),
        1984: (35, 70),
        1985: (45, 120),
        1986: (55, 180),
        1987: (70, 250),
        1988: (80, 300),
    },
    "sound": {
        1983: (25, 35),
        1984: (45, 80),
        1985: (35, 50),
        1986: (60, 120),
        1987: (75, 150),
        1988: (85, 180),
    },
}
DEFAULT_EQUIVALENT = (50, 100)

NAME_PREFIXES = {
    "cpu": ["Phoenix", "Quantum", "Nova", "Apex", "Vector"],
    "gpu": ["Vision", "Pixel", "Render", "Crystal", "Spectrum"],
    "sound": ["Audio", "Sonic", "Wave", "Echo", "Harmony"],
    "case": ["Elite", "Professional", "Master", "Premium", "Custom"],
}

DESCRIPTIONS = {
    "cpu": "In-house processor tuned for our product line",
    "gpu": "Proprietary video chip with enhanced color output",
    "sound": "Proprietary sound chip with extra voices",
    "case": "Signature enclosure design",
}


class CustomChipGenerator:
    """
    Budget-roll unlock of exclusive parts.

    Each quarter cumulative R&D spend buys a small, capped chance of a
    breakthrough. The part beats the best retail equivalent, and the
    margin over it (and the cost saving) grows with spend. Chips from
    this path stay exclusive for the rest of the campaign.
    """

    def __init__(
        self,
        config: dict[str, Any],
        rng: RandomSource,
        catalog: HardwareCatalog | None = None,
    ) -> None:
        self.rng = rng
        self.catalog = catalog
        research = config.get("simulation_parameters", {}).get("research", {})
        self.max_chance = float(research.get("max_chance", 0.25))
        self.spend_scale = float(research.get("spend_scale", 50_000))
        self.chance_per_scale = float(research.get("chance_per_scale", 0.02))
        self.max_per_type = int(research.get("max_per_type", 3))
        self.chip_types: list[str] = list(research.get("chip_types", ["gpu", "sound"]))

    def unlock_chance(self, total_research_spent: float) -> float:
        if self.spend_scale <= 0:
            return 0.0
        return min(
            self.max_chance,
            max(0.0, total_research_spent) / self.spend_scale * self.chance_per_scale,
        )

    def eligible_types(self, existing: list[CustomChip]) -> list[str]:
        counts = {t: 0 for t in self.chip_types}
        for chip in existing:
            if chip.type in counts:
                counts[chip.type] += 1
        return [t for t in self.chip_types if counts[t] < self.max_per_type]

    def market_equivalent(self, chip_type: str, year: int, quarter: int) -> tuple[float, float]:
        table = MARKET_EQUIVALENTS.get(chip_type)
        if table:
            clamped = min(max(year, min(table)), max(table))
            return table[clamped]
        if self.catalog is not None:
            best = self.catalog.best_available(chip_type, year, quarter)
            if best is not None:
                return best.performance, best.cost
        return DEFAULT_EQUIVALENT

    def roll(
        self,
        total_research_spent: float,
        year: int,
        quarter: int,
        existing: list[CustomChip],
    ) -> CustomChip | None:
        chance = self.unlock_chance(total_research_spent)
        if self.rng.random() >= chance:
            return None

        eligible = self.eligible_types(existing)
        if not eligible:
            logger.debug("Research roll succeeded but every chip type is capped")
            return None
        chip_type = self.rng.choice(eligible)

        eq_perf, eq_cost = self.market_equivalent(chip_type, year, quarter)
        spend_millions = total_research_spent / 1_000_000
        performance = min(100, round(eq_perf * (1.2 + spend_millions * 0.3)))
        cost = max(round(eq_cost * 0.3), round(eq_cost * (0.7 - spend_millions * 0.1)))

        prefix = self.rng.choice(NAME_PREFIXES.get(chip_type, ["Custom"]))
        chip = CustomChip(
            id=f"custom-{chip_type}-{year}-{quarter}",
            type=chip_type,
            name=f"{prefix} {chip_type.upper()}-{year}",
            performance=performance,
            cost=cost,
            description=DESCRIPTIONS.get(chip_type, "Custom component"),
            developed_year=year,
            developed_quarter=quarter,
            exclusive_to_player=True,
        )
        logger.info(
            "Research breakthrough: %s (perf %d, cost %d)", chip.name, performance, cost
        )
        return chip
