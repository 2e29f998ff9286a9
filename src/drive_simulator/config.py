"""Configuration file and credential lookup."""

import json
import os
from pathlib import Path

CONFIG_DIR = Path.home() / ".config" / "drive-simulator"
CONFIG_PATH = CONFIG_DIR / "drive-simulator.json"
LOCAL_CONFIG_PATH = Path("drive-simulator.json")

API_KEY_ENV = "GOOGLE_MAPS_API_KEY"


def load_config() -> dict:
    """Load configuration from config files.

    Merges config from global and local files:
    1. ~/.config/drive-simulator/drive-simulator.json (global, loaded first)
    2. ./drive-simulator.json (local, overrides global)

    This allows credentials in global config with project-specific settings in local.

    Config file format:
        {
            "google_api_key": "your-api-key",
            "fs": 1.0,
            "elevation_api": "google",
            "csv_separator": ";",
            "default_speed": 13.9,
            "imperial": false
        }

    Returns:
        Dict with merged config values, empty dict if no files exist.
    """
    config = {}
    for config_path in [CONFIG_PATH, LOCAL_CONFIG_PATH]:
        if config_path.exists():
            try:
                with config_path.open() as f:
                    config.update(json.load(f))
            except (json.JSONDecodeError, OSError):
                continue
    return config


def get_api_key(config: dict | None = None) -> str | None:
    """Get the Google Maps API key from config or the environment.

    Checks the config file first, then falls back to GOOGLE_MAPS_API_KEY.
    """
    if config is None:
        config = load_config()
    return config.get("google_api_key") or os.environ.get(API_KEY_ENV)
