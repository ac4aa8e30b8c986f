"""
Settings Loader

Reads the YAML settings file and merges command-line overrides.
The result is a raw mapping for the validator; nothing is resolved here.
"""

from pathlib import Path
from typing import Any

import yaml

from ...common.exceptions import ConfigError
from ...common.logging_setup import get_service_logger

logger = get_service_logger("config.loader")

EXAMPLE_CONFIG_NAME = "config.example.yaml"


def load_settings_file(config_path: str | Path) -> dict[str, Any]:
    """
    Load settings from a YAML file.

    Args:
        config_path: Path to the settings file

    Returns:
        Settings mapping (empty if the file is empty)

    Raises:
        ConfigError: file missing, unreadable, or not a mapping
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(
            f"Settings file not found: {path}. If you just installed this "
            f"utility, copy {EXAMPLE_CONFIG_NAME} to {path.name} and edit it "
            f"to suit your needs."
        )

    try:
        with open(path, "r") as f:
            settings = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading {path}: {e}") from e

    if settings is None:
        settings = {}
    if not isinstance(settings, dict):
        raise ConfigError(f"{path} must contain a mapping of settings")

    logger.info(f"Loaded settings from {path}")
    return settings


def merge_settings(
    file_settings: dict[str, Any],
    overrides: dict[str, Any],
) -> dict[str, Any]:
    """
    Merge command-line overrides over file settings.

    Overrides set to None were not supplied and are ignored.
    """
    merged = dict(file_settings)
    for key, value in overrides.items():
        if value is not None:
            merged[key] = value
    return merged
