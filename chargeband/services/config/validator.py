"""
Configuration Validator

Validates the raw control parameters against their legal ranges and
resolves them into an immutable ControlConfig. Values are never
clamped or defaulted: any violation rejects the whole configuration.
"""

import os
from typing import Any

from ...common.config import (
    ControlConfig,
    RuntimeSettings,
    LogFormat,
    KEY_SWITCH_NAME,
    KEY_TARGET,
    KEY_TOLERANCE,
    KEY_INTERVAL,
    KEY_VERBOSE,
    control_errors,
)
from ...common.exceptions import ConfigValidationError
from ...common.logging_setup import get_service_logger

logger = get_service_logger("config.validator")

KEY_LOG_LEVEL = "logLevel"
KEY_LOG_FORMAT = "logFormat"
KEY_DISCOVERY_TIMEOUT = "discoveryTimeoutSeconds"
KEY_DISCOVERY_INTERVAL = "discoveryIntervalSeconds"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates control parameters"""

    def validate(self, raw: dict[str, Any]) -> tuple[bool, list[str]]:
        """
        Validate control parameters.

        Rules are checked in order and every violation is reported:
        switch name, check interval, tolerance, target, band limits.

        Args:
            raw: Settings mapping (see KEY_* constants)

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        errors = control_errors(
            raw.get(KEY_SWITCH_NAME),
            raw.get(KEY_TARGET),
            raw.get(KEY_TOLERANCE),
            raw.get(KEY_INTERVAL),
            raw.get(KEY_VERBOSE, False),
        )
        is_valid = len(errors) == 0

        if not is_valid:
            logger.warning(
                f"Config validation failed: {len(errors)} errors",
                extra={"errors": errors},
            )
        else:
            logger.debug("Config validation passed")

        return is_valid, errors


def resolve_config(raw: dict[str, Any]) -> ControlConfig:
    """
    Resolve raw settings into a ControlConfig.

    Raises:
        ConfigValidationError: carrying every violated rule
    """
    name = raw.get(KEY_SWITCH_NAME)
    try:
        return ControlConfig(
            switch_name=name.strip() if isinstance(name, str) else name,
            target_percent=raw.get(KEY_TARGET),
            tolerance_percent=raw.get(KEY_TOLERANCE),
            interval_minutes=raw.get(KEY_INTERVAL),
            verbose=raw.get(KEY_VERBOSE) or False,
        )
    except ConfigValidationError as e:
        logger.warning(
            f"Config validation failed: {len(e.errors)} errors",
            extra={"errors": e.errors},
        )
        raise


def resolve_runtime_settings(raw: dict[str, Any]) -> RuntimeSettings:
    """
    Resolve the ambient settings.

    Absent log keys fall back to CHARGEBAND_LOG_LEVEL / CHARGEBAND_LOG_FORMAT,
    then to the RuntimeSettings defaults.
    """
    defaults = RuntimeSettings()
    errors = []

    log_level = raw.get(KEY_LOG_LEVEL, os.environ.get("CHARGEBAND_LOG_LEVEL", defaults.log_level))
    if not isinstance(log_level, str) or log_level.upper() not in LOG_LEVELS:
        errors.append(f"{KEY_LOG_LEVEL} must be one of {', '.join(LOG_LEVELS)}")

    log_format = raw.get(
        KEY_LOG_FORMAT, os.environ.get("CHARGEBAND_LOG_FORMAT", defaults.log_format.value)
    )
    try:
        log_format = LogFormat(log_format)
    except ValueError:
        errors.append(f"{KEY_LOG_FORMAT} must be 'text' or 'json'")

    discovery_timeout = raw.get(KEY_DISCOVERY_TIMEOUT, defaults.discovery_timeout_s)
    if not _is_number(discovery_timeout) or discovery_timeout <= 0:
        errors.append(f"{KEY_DISCOVERY_TIMEOUT} must be a positive number")

    discovery_interval = raw.get(KEY_DISCOVERY_INTERVAL, defaults.discovery_interval_s)
    if not _is_number(discovery_interval) or discovery_interval <= 0:
        errors.append(f"{KEY_DISCOVERY_INTERVAL} must be a positive number")

    if errors:
        raise ConfigValidationError(errors)

    return RuntimeSettings(
        log_level=log_level.upper(),
        log_format=log_format,
        discovery_timeout_s=float(discovery_timeout),
        discovery_interval_s=float(discovery_interval),
    )
