"""Static data writer for dumping the catalog and rosters to CSVs."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from retro_tycoon.writers.base import BaseWriter

if TYPE_CHECKING:
    from retro_tycoon.catalog.hardware import HardwareCatalog
    from retro_tycoon.product.core import Competitor, ComputerModel


class StaticWriter(BaseWriter):
    """Writes the hardware catalog, rival roster and player models to CSV files."""

    def write(self, data: Any, destination: str) -> None:
        self.write_rows(destination, list(data))

    def write_components(self, catalog: HardwareCatalog) -> None:
        """Every catalog part, custom parts included."""
        self.write_rows("components.csv", catalog.all_components())

    def write_competitors(self, competitors: list[Competitor]) -> None:
        """Rival roster plus one row per rival model keyed by competitor id."""
        self.write_rows("competitors.csv", competitors)
        self.write_rows(
            "competitor_models.csv",
            [{"competitor_id": c.id, **asdict(m)} for c in competitors for m in c.models],
        )

    def write_models(self, models: list[ComputerModel]) -> None:
        self.write_rows("models.csv", models)
