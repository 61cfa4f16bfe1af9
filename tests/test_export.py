import csv
import json

import pandas as pd
import pyarrow.parquet as pq
import pytest

from retro_tycoon.catalog.hardware import HardwareCatalog
from retro_tycoon.config.loader import (
    load_hardware_catalog,
    load_market_definition,
    load_simulation_config,
)
from retro_tycoon.simulation.campaign import Campaign
from retro_tycoon.simulation.state import GameState
from retro_tycoon.simulation.writer import (
    ParquetTableSink,
    SimulationWriter,
    get_fieldnames,
    get_parquet_schema,
)
from retro_tycoon.writers import StaticWriter


def test_loader_rejects_non_object_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(TypeError):
        load_simulation_config(str(path))


def test_default_configs_load():
    assert "simulation_parameters" in load_simulation_config()
    assert "components" in load_hardware_catalog()


def test_unknown_output_format():
    with pytest.raises(ValueError):
        SimulationWriter(output_format="xlsx")


def test_disabled_writer_writes_nothing(tmp_path):
    writer = SimulationWriter(output_dir=str(tmp_path / "out"), enable_logging=False)
    writer.save({"seed": 1})
    assert not (tmp_path / "out").exists()


@pytest.mark.parametrize("fmt", ["csv", "parquet"])
def test_campaign_export(tmp_path, fmt):
    """A short campaign leaves every table plus metrics.json behind."""
    campaign = Campaign(
        seed=21,
        strategy="balanced",
        output_dir=str(tmp_path),
        enable_logging=True,
        output_format=fmt,
    )
    campaign.run(quarters=4)
    campaign.save_results()

    metrics = json.loads((tmp_path / "metrics.json").read_text())
    assert metrics["quarters_played"] == 4
    assert metrics["strategy"] == "balanced"

    if fmt == "parquet":
        quarters = pq.read_table(tmp_path / "quarters.parquet").to_pandas()
    else:
        quarters = pd.read_csv(tmp_path / "quarters.csv")
    assert list(quarters.columns) == get_fieldnames("quarters")
    assert len(quarters) == 4
    assert list(quarters["year"]) == [1983] * 4

    for table in ("model_sales", "competitors", "news"):
        assert (tmp_path / f"{table}.{fmt}").exists()
    assert (tmp_path / "components.csv").exists()
    assert (tmp_path / "models.csv").exists()


def test_streaming_csv_export(tmp_path):
    campaign = Campaign(
        seed=4,
        output_dir=str(tmp_path),
        enable_logging=True,
        streaming=True,
    )
    campaign.run(quarters=3)
    campaign.save_results()

    with open(tmp_path / "quarters.csv", newline="") as f:
        rows = list(csv.DictReader(f))
    assert [int(r["quarter"]) for r in rows] == [1, 2, 3]


def test_static_writer_components(tmp_path):
    StaticWriter(str(tmp_path)).write_components(HardwareCatalog())
    components = pd.read_csv(tmp_path / "components.csv")
    assert {"name", "category", "performance", "cost", "year", "quarter"} <= set(components.columns)
    assert (components["category"] == "cpu").sum() == 7


def test_static_writer_rosters(tmp_path):
    state = GameState.new_game("Acme", load_simulation_config(), load_market_definition())
    writer = StaticWriter(str(tmp_path))
    writer.write_competitors(state.competitors)
    writer.write_models([])

    rivals = pd.read_csv(tmp_path / "competitor_models.csv")
    assert "competitor_id" in rivals.columns
    assert set(rivals["competitor_id"]) <= {c.id for c in state.competitors}
    assert len(pd.read_csv(tmp_path / "competitors.csv")) == len(state.competitors)
    assert not (tmp_path / "models.csv").exists()


def test_parquet_sink_writes_row_groups(tmp_path):
    path = tmp_path / "news.parquet"
    sink = ParquetTableSink(path, get_parquet_schema("news"), batch_size=2)
    rows = [
        {"year": 1983, "quarter": q, "id": f"n{q}", "category": "market",
         "headline": "Computer market keeps growing", "extra": "dropped"}
        for q in (1, 2, 3)
    ]
    sink.write_rows(rows)
    assert sink.row_count == 3
    sink.close()

    parquet = pq.ParquetFile(path)
    assert parquet.metadata.num_row_groups == 2
    table = parquet.read().to_pandas()
    assert list(table.columns) == get_fieldnames("news")
    assert table["byline"].isna().all()
