import copy
import gzip
import json

import pytest

from retro_tycoon.config.loader import load_market_definition, load_simulation_config
from retro_tycoon.product.core import CustomChip
from retro_tycoon.simulation.campaign import Campaign
from retro_tycoon.simulation.snapshot import (
    StaleSnapshotError,
    compute_config_hash,
    load_snapshot,
    read_metadata,
    save_snapshot,
)


@pytest.fixture
def played(tmp_path):
    campaign = Campaign(seed=12, strategy="premium")
    campaign.run(quarters=6)
    path = tmp_path / "saves" / "game.json.gz"
    campaign.save_game(str(path))
    return campaign, path


def test_saved_state_restores_equal(played):
    campaign, path = played
    restored = load_snapshot(path, campaign.config, campaign.market_definition)
    assert restored == campaign.state
    assert (restored.year, restored.quarter) == (1984, 3)


def test_metadata(played):
    campaign, path = played
    metadata = read_metadata(path)
    assert metadata["seed"] == 12
    assert (metadata["year"], metadata["quarter"]) == (1984, 3)
    assert metadata["config_hash"] == compute_config_hash(
        campaign.config, campaign.market_definition
    )


def test_changed_config_is_rejected(played):
    campaign, path = played
    config = copy.deepcopy(campaign.config)
    config["simulation_parameters"]["events"]["trigger_chance"] = 0.9
    with pytest.raises(StaleSnapshotError):
        load_snapshot(path, config, campaign.market_definition)
    # Without documents to compare against, the hash is not checked
    assert load_snapshot(path).year == 1984


def test_unknown_version_is_rejected(tmp_path):
    path = tmp_path / "old.json.gz"
    with gzip.open(path, "wt", encoding="utf-8") as f:
        json.dump({"metadata": {"version": 0}, "state": {}}, f)
    with pytest.raises(StaleSnapshotError):
        load_snapshot(path)


def test_resumed_campaign_keeps_playing(played):
    _, path = played
    resumed = Campaign(seed=12, strategy="premium")
    resumed.load_game(str(path))
    resumed.run(quarters=2)
    assert (resumed.state.year, resumed.state.quarter) == (1985, 1)
    assert len(resumed.history) == 2


def test_finished_game_stays_finished(tmp_path):
    config = load_simulation_config()
    market = load_market_definition()
    campaign = Campaign(seed=5, config=config)
    campaign.state.year, campaign.state.quarter = 1992, 4
    campaign.run(quarters=1)
    assert campaign.state.game_over

    path = save_snapshot(campaign.state, tmp_path / "end.json.gz", config, market)
    resumed = Campaign(seed=5, config=config)
    resumed.load_game(str(path))
    assert resumed.game_end is not None
    assert resumed.run(quarters=3) == resumed.game_end
    assert resumed.history == []


def test_resumed_catalog_knows_saved_custom_parts(tmp_path):
    campaign = Campaign(seed=8)
    campaign.state.custom_chips.append(
        CustomChip(
            id="custom-gpu-1983-1",
            type="gpu",
            name="Pixel GPU-1983",
            performance=90,
            cost=40,
            description="In-house graphics",
            developed_year=1983,
            developed_quarter=1,
        )
    )
    path = tmp_path / "chips.json.gz"
    campaign.save_game(str(path))

    resumed = Campaign(seed=8)
    resumed.load_game(str(path))
    part = resumed.catalog.get_component("gpu", "Pixel GPU-1983")
    assert part is not None
    assert part.exclusive
    assert part.performance == 90

    # The first decision after loading already sees the part
    model = resumed.player.design_model(resumed.state)
    assert model.gpu == "Pixel GPU-1983"
