from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from retro_tycoon.product.core import quarters_elapsed


@dataclass(frozen=True)
class ObsolescenceInfo:
    factor: float
    quarters: int


class ObsolescenceModel:
    """Age-based demand penalty for released models: max(floor, 1 - rate * age)."""

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        obs_config = (
            (config or {}).get("simulation_parameters", {}).get("obsolescence", {})
        )
        self.rate = float(obs_config.get("rate_per_quarter", 0.15))
        self.floor = float(obs_config.get("floor", 0.2))

    def factor(
        self,
        release_year: int,
        release_quarter: int,
        current_year: int,
        current_quarter: int,
    ) -> float:
        return self.info(release_year, release_quarter, current_year, current_quarter).factor

    def info(
        self,
        release_year: int,
        release_quarter: int,
        current_year: int,
        current_quarter: int,
    ) -> ObsolescenceInfo:
        # A release dated in the future counts as brand new
        elapsed = max(
            0,
            quarters_elapsed(release_year, release_quarter, current_year, current_quarter),
        )
        return ObsolescenceInfo(max(self.floor, 1.0 - self.rate * elapsed), elapsed)

    def apply_to_sales(
        self,
        base_sales: float,
        release_year: int,
        release_quarter: int,
        current_year: int,
        current_quarter: int,
    ) -> int:
        factor = self.factor(release_year, release_quarter, current_year, current_quarter)
        return round(base_sales * factor)
