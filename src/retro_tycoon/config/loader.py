import json
from pathlib import Path
from typing import Any


def _load_json_dict(config_path: str | None, default_name: str) -> dict[str, Any]:
    if config_path is None:
        # Default to the file next to this script
        final_path = Path(__file__).parent / default_name
    else:
        final_path = Path(config_path)

    with open(final_path) as f:
        data = json.load(f)
        if not isinstance(data, dict):
            raise TypeError(f"Expected dict from {final_path}, got {type(data)}")
        return data


def load_simulation_config(config_path: str | None = None) -> dict[str, Any]:
    """
    Loads the simulation runtime configuration (calendar, tuning curves).
    If no path is provided, looks for simulation_config.json in the config directory.
    """
    return _load_json_dict(config_path, "simulation_config.json")


def load_hardware_catalog(config_path: str | None = None) -> dict[str, Any]:
    """
    Loads the hardware catalog (components, release dates, baseline costs).
    If no path is provided, looks for hardware_catalog.json in the config directory.
    """
    return _load_json_dict(config_path, "hardware_catalog.json")


def load_market_definition(config_path: str | None = None) -> dict[str, Any]:
    """
    Loads the market definition (rival companies, market events, headlines).
    If no path is provided, looks for market_definition.json in the config directory.
    """
    return _load_json_dict(config_path, "market_definition.json")
