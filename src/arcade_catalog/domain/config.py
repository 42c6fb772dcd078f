from __future__ import annotations

"""
Configuration Domain Management.

Handles persistent storage of the tool settings (database location, logging,
default thresholds) as JSON in the user data directory. Missing or corrupt
files fall back to defaults instead of failing.
"""

import json
import logging
import os
from typing import Any, Dict

from arcade_catalog.domain.constants import (
    CURRENT_CONFIG_VERSION,
    DEFAULT_LARGE_MIN_SIZE,
    DEFAULT_SCAN_LIMIT,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_TRIM_MAX_LENGTH,
)
from arcade_catalog.infra.fs import DEFAULT_DATABASE_FILE, get_user_data_dir

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.json"


def get_config_path() -> str:
    return os.path.join(get_user_data_dir(), CONFIG_FILE_NAME)

# -----------------------------------------------------------------------------
# Configuration Models (Dict-based)
# -----------------------------------------------------------------------------

def get_default_config() -> Dict[str, Any]:
    """
    Generate the default runtime configuration.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        # Storage
        "database_path": DEFAULT_DATABASE_FILE,

        # Diagnostics
        "log_level": "INFO",
        "log_file": "",

        # Maintenance defaults
        "scan_limit": DEFAULT_SCAN_LIMIT,
        "trim_max_length": DEFAULT_TRIM_MAX_LENGTH,
        "large_min_size_bytes": DEFAULT_LARGE_MIN_SIZE,
        "search_limit": DEFAULT_SEARCH_LIMIT,
    }

# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------

def load_config() -> Dict[str, Any]:
    """
    Load the configuration from disk, merged over the defaults.

    Returns:
        Dict[str, Any]: The loaded configuration or the defaults on failure.
    """
    config = get_default_config()
    path = get_config_path()

    if not os.path.exists(path):
        logger.debug("Config file not found. Returning defaults.")
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load config: {e}. Using defaults.")
        return config

    if not isinstance(data, dict):
        logger.warning("Corrupted config file. Resetting to defaults.")
        return config

    data.pop("version", None)
    config.update(data)
    return config


def save_config(config: Dict[str, Any]) -> bool:
    """
    Persist the configuration to disk with the current version stamp.

    Args:
        config: The configuration dictionary to save.

    Returns:
        bool: True when the file was written.
    """
    path = get_config_path()
    payload = dict(config)
    payload["version"] = CURRENT_CONFIG_VERSION
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=4)
    except OSError as e:
        logger.error(f"Failed to save configuration: {e}")
        return False

    logger.debug(f"Configuration saved to {path}")
    return True
