"""
Config Service - settings loading and validation

Responsibilities:
- Load the YAML settings file
- Merge command-line overrides
- Validate and resolve the control parameters
"""

from .loader import load_settings_file, merge_settings
from .validator import ConfigValidator, resolve_config, resolve_runtime_settings

__all__ = [
    "ConfigValidator",
    "load_settings_file",
    "merge_settings",
    "resolve_config",
    "resolve_runtime_settings",
]
