"""
Campaign data export with streaming support.

Writes one row per quarter, per model on sale, per rival and per news item,
as CSV or Parquet, plus a final metrics JSON.
"""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pyarrow as pa
import pyarrow.parquet as pq

if TYPE_CHECKING:
    from retro_tycoon.simulation.orchestrator import TurnResult

logger = logging.getLogger(__name__)


class TableSink:
    """One export table on disk, appended to quarter by quarter."""

    def __init__(self, filepath: Path) -> None:
        self.filepath = filepath
        self.rows_written = 0

    def write_rows(self, rows: list[dict[str, Any]]) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass

    @property
    def row_count(self) -> int:
        return self.rows_written


class CsvTableSink(TableSink):
    """Header goes out with the first batch; unknown keys are ignored."""

    def __init__(self, filepath: Path, fieldnames: list[str]) -> None:
        super().__init__(filepath)
        self.fieldnames = fieldnames
        self._handle: Any = None
        self._csv: csv.DictWriter[str] | None = None

    def write_rows(self, rows: list[dict[str, Any]]) -> None:
        if self._csv is None:
            self._handle = open(self.filepath, "w", newline="")
            self._csv = csv.DictWriter(
                self._handle, fieldnames=self.fieldnames, extrasaction="ignore"
            )
            self._csv.writeheader()
        self._csv.writerows(rows)
        self.rows_written += len(rows)

    def flush(self) -> None:
        if self._handle is not None:
            self._handle.flush()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
        self._handle = None
        self._csv = None


class ParquetTableSink(TableSink):
    """
    Buffers rows and writes a row group per `batch_size` rows.

    Rows are projected onto the table schema: extra keys are dropped and
    missing columns are written as null.
    """

    def __init__(self, filepath: Path, schema: pa.Schema, batch_size: int = 1000) -> None:
        super().__init__(filepath)
        self.schema = schema
        self.batch_size = batch_size
        self._pending: list[dict[str, Any]] = []
        self._parquet: pq.ParquetWriter | None = None

    def _write_group(self, rows: list[dict[str, Any]]) -> None:
        if self._parquet is None:
            self._parquet = pq.ParquetWriter(self.filepath, self.schema)
        columns = self.schema.names
        group = pa.Table.from_pylist(
            [{name: row.get(name) for name in columns} for row in rows],
            schema=self.schema,
        )
        self._parquet.write_table(group)
        self.rows_written += len(rows)

    def write_rows(self, rows: list[dict[str, Any]]) -> None:
        self._pending.extend(rows)
        while len(self._pending) >= self.batch_size:
            group, self._pending = (
                self._pending[: self.batch_size],
                self._pending[self.batch_size :],
            )
            self._write_group(group)

    def flush(self) -> None:
        if self._pending:
            group, self._pending = self._pending, []
            self._write_group(group)

    def close(self) -> None:
        self.flush()
        if self._parquet is not None:
            self._parquet.close()
            self._parquet = None

    @property
    def row_count(self) -> int:
        return self.rows_written + len(self._pending)


# Table schemas, in column order
TABLE_SCHEMAS: dict[str, list[tuple[str, pa.DataType]]] = {
    "quarters": [
        ("year", pa.int32()),
        ("quarter", pa.int32()),
        ("revenue", pa.float64()),
        ("profit", pa.float64()),
        ("net_cash_flow", pa.float64()),
        ("units_sold", pa.int64()),
        ("profit_margin", pa.float64()),
        ("cash", pa.float64()),
        ("market_share", pa.float64()),
        ("market_share_delta", pa.float64()),
        ("reputation", pa.float64()),
        ("reputation_delta", pa.float64()),
        ("models_on_sale", pa.int32()),
        ("released_models", pa.int32()),
        ("active_events", pa.string()),
        ("demand_engine", pa.string()),
        ("expense_marketing", pa.float64()),
        ("expense_development", pa.float64()),
        ("expense_research", pa.float64()),
        ("expense_projects", pa.float64()),
        ("expense_total", pa.float64()),
        ("bom_costs", pa.float64()),
        ("development_costs", pa.float64()),
        ("marketing_costs", pa.float64()),
        ("production_costs", pa.float64()),
        ("fixed_overhead", pa.float64()),
    ],
    "model_sales": [
        ("year", pa.int32()),
        ("quarter", pa.int32()),
        ("model_id", pa.string()),
        ("model_name", pa.string()),
        ("engine", pa.string()),
        ("price", pa.float64()),
        ("units_sold", pa.int64()),
        ("gamer_units", pa.int64()),
        ("business_units", pa.int64()),
        ("workstation_units", pa.int64()),
        ("revenue", pa.float64()),
        ("bom_cost", pa.float64()),
        ("obsolescence_factor", pa.float64()),
        ("customer_satisfaction", pa.float64()),
        ("brand_impact", pa.float64()),
        ("rank", pa.int32()),
        ("market_share", pa.float64()),
        ("price_position", pa.string()),
        ("bom_costs", pa.float64()),
        ("development_costs", pa.float64()),
        ("marketing_costs", pa.float64()),
        ("production_costs", pa.float64()),
        ("fixed_overhead", pa.float64()),
        ("gross_profit", pa.float64()),
        ("net_profit", pa.float64()),
        ("profit_margin", pa.float64()),
    ],
    "competitors": [
        ("year", pa.int32()),
        ("quarter", pa.int32()),
        ("competitor_id", pa.string()),
        ("name", pa.string()),
        ("market_share", pa.float64()),
        ("share_change", pa.float64()),
        ("model_count", pa.int32()),
        ("total_units_sold", pa.int64()),
        ("released_model", pa.string()),
    ],
    "news": [
        ("year", pa.int32()),
        ("quarter", pa.int32()),
        ("id", pa.string()),
        ("category", pa.string()),
        ("headline", pa.string()),
        ("byline", pa.string()),
    ],
}


def get_parquet_schema(table_name: str) -> pa.Schema:
    return pa.schema(TABLE_SCHEMAS[table_name])


def get_fieldnames(table_name: str) -> list[str]:
    return [name for name, _ in TABLE_SCHEMAS[table_name]]


class SimulationWriter:
    """
    Quarter, model-sales, rival and news tables for one campaign.

    Rows are held in memory and written by save(), or with streaming=True
    appended to open CSV or Parquet sinks after every quarter. Disabled
    writers accept rows and write nothing.
    """

    def __init__(
        self,
        output_dir: str = "data/output",
        enable_logging: bool = False,
        streaming: bool = False,
        output_format: str = "csv",
        parquet_batch_size: int = 1000,
    ) -> None:
        if output_format not in ("csv", "parquet"):
            raise ValueError(f"Unknown output format: {output_format}")

        self.output_dir = Path(output_dir)
        self.enable_logging = enable_logging
        self.streaming = streaming
        self.output_format = output_format
        self.parquet_batch_size = parquet_batch_size

        if self.enable_logging:
            self.output_dir.mkdir(parents=True, exist_ok=True)

        self._sinks: dict[str, TableSink] = {}
        self.tables: dict[str, list[dict[str, Any]]] = {
            name: [] for name in TABLE_SCHEMAS
        }

        if self.enable_logging and self.streaming:
            self._open_sinks()

    def _open_sinks(self) -> None:
        for name in TABLE_SCHEMAS:
            self._sinks[name] = self._sink(name)

    def _emit(self, table: str, rows: list[dict[str, Any]]) -> None:
        if not rows:
            return
        sink = self._sinks.get(table)
        if self.streaming and sink is not None:
            sink.write_rows(rows)
        else:
            self.tables[table].extend(rows)

    def log_quarter(self, result: TurnResult) -> None:
        """Record every table for one processed quarter. Terminal results are skipped."""
        if not self.enable_logging or result.game_end is not None:
            return

        report = result.report
        stamp = {"year": report.year, "quarter": report.quarter}
        self._emit("quarters", [report.summary()])
        self._emit(
            "model_sales",
            [{**stamp, **r.to_dict(), "engine": r.engine} for r in report.model_results],
        )

        released = {r.competitor_id: r.model.name for r in result.competitor_update.releases}
        self._emit(
            "competitors",
            [
                {
                    **stamp,
                    "competitor_id": c.id,
                    "name": c.name,
                    "market_share": c.market_share,
                    "share_change": result.competitor_update.share_changes.get(c.id, 0.0),
                    "model_count": len(c.models),
                    "total_units_sold": c.total_units_sold,
                    "released_model": released.get(c.id, ""),
                }
                for c in result.state.competitors
            ],
        )
        self._emit(
            "news",
            [
                {
                    **stamp,
                    "id": n.id,
                    "category": n.category,
                    "headline": n.headline,
                    "byline": n.byline or "",
                }
                for n in result.news
            ],
        )

    def flush(self) -> None:
        if self.streaming:
            for sink in self._sinks.values():
                sink.flush()

    def save(self, final_metrics: dict[str, Any]) -> None:
        """Write buffered tables and metrics.json, then close any open sinks."""
        if not self.enable_logging:
            logger.info("Export disabled, nothing written")
            return

        if self.streaming:
            self._close_sinks()
            counts = {name: s.row_count for name, s in self._sinks.items()}
            logger.info("Streaming export complete: %s", counts)
        else:
            for name, rows in self.tables.items():
                if not rows:
                    continue
                sink = self._sink(name)
                sink.write_rows(rows)
                sink.close()
            logger.info("Wrote %d tables to %s", len(self.tables), self.output_dir)

        with open(self.output_dir / "metrics.json", "w") as f:
            json.dump(final_metrics, f, indent=2, default=str)

        logger.info("Campaign data exported to %s", self.output_dir)

    def _close_sinks(self) -> None:
        for sink in self._sinks.values():
            sink.close()

    def _sink(self, table: str) -> TableSink:
        if self.output_format == "parquet":
            return ParquetTableSink(
                self.output_dir / f"{table}.parquet",
                get_parquet_schema(table),
                self.parquet_batch_size,
            )
        return CsvTableSink(self.output_dir / f"{table}.csv", get_fieldnames(table))

    @contextmanager
    def streaming_context(self) -> Iterator[SimulationWriter]:
        """Closes streaming sinks however the run ends."""
        try:
            yield self
        finally:
            if self.streaming:
                self._close_sinks()
