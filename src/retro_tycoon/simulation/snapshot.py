"""
Save and load game sessions.

A snapshot is a gzip-compressed JSON document holding the GameState plus a
hash of the configuration it was played under, so a save taken with
different tunables or market data is rejected instead of silently resumed.
"""

from __future__ import annotations

import gzip
import hashlib
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from retro_tycoon.simulation.state import GameState

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class StaleSnapshotError(ValueError):
    """Snapshot was written under a different configuration or format."""


def compute_config_hash(config: dict[str, Any], market_definition: dict[str, Any]) -> str:
    """16-character hash over both documents, serialized with sorted keys."""
    combined = json.dumps(config, sort_keys=True) + json.dumps(
        market_definition, sort_keys=True
    )
    return hashlib.sha256(combined.encode()).hexdigest()[:16]


def save_snapshot(
    state: GameState,
    output_path: Path | str,
    config: dict[str, Any],
    market_definition: dict[str, Any],
    seed: int | None = None,
) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    snapshot = {
        "metadata": {
            "version": SNAPSHOT_VERSION,
            "saved_at": datetime.now(UTC).isoformat(),
            "config_hash": compute_config_hash(config, market_definition),
            "seed": seed,
            "year": state.year,
            "quarter": state.quarter,
            "n_models": len(state.models),
        },
        "state": state.to_dict(),
    }
    with gzip.open(output_path, "wt", encoding="utf-8") as f:
        json.dump(snapshot, f, separators=(",", ":"))

    logger.info(
        "Saved %s at %dQ%d (%d bytes)",
        output_path.name,
        state.year,
        state.quarter,
        output_path.stat().st_size,
    )
    return output_path


def read_metadata(path: Path | str) -> dict[str, Any]:
    with gzip.open(path, "rt", encoding="utf-8") as f:
        return json.load(f)["metadata"]


def load_snapshot(
    path: Path | str,
    config: dict[str, Any] | None = None,
    market_definition: dict[str, Any] | None = None,
) -> GameState:
    """
    Restore a GameState.

    When both config and market_definition are given, the stored hash must
    match them.

    Raises:
        StaleSnapshotError: On a version or configuration mismatch
    """
    with gzip.open(path, "rt", encoding="utf-8") as f:
        snapshot = json.load(f)

    metadata = snapshot.get("metadata", {})
    if metadata.get("version") != SNAPSHOT_VERSION:
        raise StaleSnapshotError(
            f"Snapshot version {metadata.get('version')} != {SNAPSHOT_VERSION}"
        )
    if config is not None and market_definition is not None:
        expected = compute_config_hash(config, market_definition)
        if metadata.get("config_hash") != expected:
            raise StaleSnapshotError(
                f"Snapshot config hash {metadata.get('config_hash')} != {expected}"
            )

    state = GameState.from_dict(snapshot["state"])
    logger.info("Loaded snapshot at %dQ%d", state.year, state.quarter)
    return state
