#!/usr/bin/env python
"""Summarize an exported campaign with DuckDB.

Reads the quarters / model_sales / competitors tables (CSV or Parquet) that
run_simulation.py writes and prints yearly P&L, best-selling models and the
market share race.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

import duckdb
import pandas as pd

logger = logging.getLogger(__name__)

TABLES = ("quarters", "model_sales", "competitors")


def _table_source(results_dir: Path, table: str) -> str | None:
    parquet = results_dir / f"{table}.parquet"
    if parquet.exists():
        return f"read_parquet('{parquet}')"
    csv_path = results_dir / f"{table}.csv"
    if csv_path.exists():
        return f"read_csv_auto('{csv_path}')"
    return None


def load_tables(db: duckdb.DuckDBPyConnection, results_dir: Path) -> list[str]:
    """Register every exported table as a DuckDB view. Returns the loaded names."""
    loaded = []
    for table in TABLES:
        source = _table_source(results_dir, table)
        if source is None:
            logger.warning("No %s table in %s", table, results_dir)
            continue
        db.execute(f"CREATE OR REPLACE VIEW {table} AS SELECT * FROM {source}")
        loaded.append(table)
    return loaded


def yearly_pnl(db: duckdb.DuckDBPyConnection) -> pd.DataFrame:
    return db.execute(
        """
        SELECT year,
               SUM(units_sold)     AS units,
               SUM(revenue)        AS revenue,
               SUM(profit)         AS model_profit,
               SUM(net_cash_flow)  AS cash_flow,
               arg_max(cash, quarter)          AS closing_cash,
               arg_max(market_share, quarter)  AS closing_share,
               arg_max(reputation, quarter)    AS closing_reputation
        FROM quarters
        GROUP BY year
        ORDER BY year
        """
    ).df()


def top_models(db: duckdb.DuckDBPyConnection, limit: int = 10) -> pd.DataFrame:
    return db.execute(
        f"""
        SELECT model_id,
               ANY_VALUE(model_name)  AS model_name,
               MIN(year * 10 + quarter) AS first_quarter,
               COUNT(*)               AS quarters_on_sale,
               SUM(units_sold)        AS units,
               SUM(revenue)           AS revenue,
               SUM(net_profit)        AS net_profit,
               AVG(customer_satisfaction) AS satisfaction
        FROM model_sales
        GROUP BY model_id
        ORDER BY revenue DESC
        LIMIT {int(limit)}
        """
    ).df()


def share_race(db: duckdb.DuckDBPyConnection, has_quarters: bool) -> pd.DataFrame:
    """Year-end market share per company, player included when available."""
    rivals = db.execute(
        """
        SELECT year, name, arg_max(market_share, quarter) AS market_share
        FROM competitors
        GROUP BY year, name
        """
    ).df()
    table = rivals.pivot(index="year", columns="name", values="market_share")
    if has_quarters:
        player = db.execute(
            """
            SELECT year, arg_max(market_share, quarter) AS market_share
            FROM quarters GROUP BY year
            """
        ).df()
        table["Player"] = player.set_index("year")["market_share"]
    return table.sort_index()


def analyze_campaign(results_dir: str) -> dict:
    """Run every summary query and return the frames keyed by name."""
    results_path = Path(results_dir)
    if not results_path.exists():
        raise FileNotFoundError(f"Results directory not found: {results_dir}")

    db = duckdb.connect()
    loaded = load_tables(db, results_path)

    summary: dict = {}
    metrics_file = results_path / "metrics.json"
    if metrics_file.exists():
        with open(metrics_file) as f:
            summary["metrics"] = json.load(f)
    if "quarters" in loaded:
        summary["yearly_pnl"] = yearly_pnl(db)
    if "model_sales" in loaded:
        summary["top_models"] = top_models(db)
    if "competitors" in loaded:
        summary["share_race"] = share_race(db, "quarters" in loaded)
    db.close()
    return summary


def main() -> None:
    parser = argparse.ArgumentParser(description="Summarize an exported campaign")
    parser.add_argument(
        "results_dir",
        nargs="?",
        default="data/output",
        help="Directory written by run_simulation.py",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    summary = analyze_campaign(args.results_dir)
    pd.set_option("display.width", 140)
    pd.set_option("display.float_format", "{:,.2f}".format)

    if "metrics" in summary:
        m = summary["metrics"]
        print("=" * 70)
        print(f"Campaign seed={m.get('seed')} strategy={m.get('strategy')}")
        print(f"Quarters played: {m.get('quarters_played')}  Rank: {m.get('rank', '-')}")
        print("=" * 70)
    for key, title in (
        ("yearly_pnl", "YEARLY P&L"),
        ("top_models", "BEST-SELLING MODELS"),
        ("share_race", "YEAR-END MARKET SHARE (%)"),
    ):
        if key in summary:
            print(f"\n--- {title} ---")
            print(summary[key].to_string())


if __name__ == "__main__":
    main()
