"""Shared plumbing for the CSV dump writers."""

from __future__ import annotations

import csv
import enum
from abc import ABC, abstractmethod
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any


def flatten_record(item: Any) -> dict[str, Any]:
    """Dataclass or dict as a flat CSV row (enums by value, containers as text)."""
    row = asdict(item) if is_dataclass(item) else dict(item)
    for key, value in row.items():
        if isinstance(value, enum.Enum):
            row[key] = value.value
        elif isinstance(value, (dict, list, tuple)):
            row[key] = str(value)
    return row


class BaseWriter(ABC):
    """Writes record lists as CSV files under one output directory."""

    def __init__(self, output_dir: str) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    @abstractmethod
    def write(self, data: Any, destination: str) -> None:
        """Write data to the named file inside the output directory."""

    def write_rows(self, filename: str, items: list[Any]) -> Path | None:
        """Header taken from the first record; nothing is written for an empty list."""
        if not items:
            return None
        rows = [flatten_record(item) for item in items]
        path = self.output_dir / filename
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
            writer.writeheader()
            writer.writerows(rows)
        return path
