"""
Configuration Dataclasses

Type-safe configuration structures for the controller.
The control parameters are resolved once at startup and never mutated.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import ConfigValidationError


# Band policy (stricter variant: target in [30, 90], band inside [20, 90])
MIN_TOLERANCE_PCT = 1
MAX_TOLERANCE_PCT = 30
MIN_TARGET_PCT = 30
MAX_TARGET_PCT = 90
SAFETY_FLOOR_PCT = 20
SAFETY_CEILING_PCT = 90
MIN_INTERVAL_MIN = 1

# Settings keys (shared by the settings file and the CLI overrides)
KEY_SWITCH_NAME = "switchName"
KEY_TARGET = "percentTarget"
KEY_TOLERANCE = "percentTolerance"
KEY_INTERVAL = "batteryCheckIntervalMinutes"
KEY_VERBOSE = "verboseLog"


class ChargeState(str, Enum):
    """Battery charge states reported by telemetry"""
    CHARGING = "charging"
    DISCHARGING = "discharging"
    FULL = "full"
    NO_BATTERY = "no battery"
    UNDETERMINED = "undetermined"


class SwitchState(str, Enum):
    """Observed or commanded smart switch state"""
    ON = "on"
    OFF = "off"


class LogFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


def is_whole_number(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def control_errors(
    switch_name: Any,
    target: Any,
    tolerance: Any,
    interval: Any,
    verbose: Any = False,
) -> list[str]:
    """
    Check control parameters against the band policy.

    Rules, in order: switch name, check interval, tolerance, target,
    band floor/ceiling. Every violation is returned.
    """
    errors = []

    if not isinstance(switch_name, str) or not switch_name.strip():
        errors.append(f"{KEY_SWITCH_NAME} is required and must be a non-empty string")

    if not is_whole_number(interval):
        errors.append(f"{KEY_INTERVAL} must be a whole number of minutes")
    elif interval < MIN_INTERVAL_MIN:
        errors.append(f"{KEY_INTERVAL} must be at least {MIN_INTERVAL_MIN} (got {interval})")

    if not is_whole_number(tolerance):
        errors.append(f"{KEY_TOLERANCE} must be a whole number")
    elif not MIN_TOLERANCE_PCT <= tolerance <= MAX_TOLERANCE_PCT:
        errors.append(
            f"{KEY_TOLERANCE} must be between {MIN_TOLERANCE_PCT} and "
            f"{MAX_TOLERANCE_PCT} (got {tolerance})"
        )

    if not is_whole_number(target):
        errors.append(f"{KEY_TARGET} must be a whole number")
    elif not MIN_TARGET_PCT <= target <= MAX_TARGET_PCT:
        errors.append(
            f"{KEY_TARGET} must be between {MIN_TARGET_PCT} and "
            f"{MAX_TARGET_PCT} (got {target})"
        )

    # Band limits, only checked once both values are numbers
    if is_whole_number(target) and is_whole_number(tolerance):
        if target - tolerance < SAFETY_FLOOR_PCT:
            errors.append(
                f"{KEY_TARGET} - {KEY_TOLERANCE} must be at least "
                f"{SAFETY_FLOOR_PCT} (got {target - tolerance})"
            )
        if target + tolerance > SAFETY_CEILING_PCT:
            errors.append(
                f"{KEY_TARGET} + {KEY_TOLERANCE} must not exceed "
                f"{SAFETY_CEILING_PCT} (got {target + tolerance})"
            )

    if verbose is not None and not isinstance(verbose, bool):
        errors.append(f"{KEY_VERBOSE} must be true or false")

    return errors


@dataclass(frozen=True)
class ControlConfig:
    """Control parameters; construction rejects anything outside the band policy"""
    switch_name: str
    target_percent: int
    tolerance_percent: int
    interval_minutes: int
    verbose: bool = False

    def __post_init__(self) -> None:
        errors = control_errors(
            self.switch_name,
            self.target_percent,
            self.tolerance_percent,
            self.interval_minutes,
            self.verbose,
        )
        if errors:
            raise ConfigValidationError(errors)

    @property
    def lower_bound(self) -> int:
        """Lowest percent still inside the band"""
        return self.target_percent - self.tolerance_percent

    @property
    def upper_bound(self) -> int:
        """Percent at which charging is cut (exclusive end of the band)"""
        return self.target_percent + self.tolerance_percent

    @property
    def interval_seconds(self) -> int:
        return self.interval_minutes * 60


@dataclass(frozen=True)
class RuntimeSettings:
    """Ambient settings that never influence control decisions"""
    log_level: str = "INFO"
    log_format: LogFormat = LogFormat.TEXT
    discovery_timeout_s: float = 5.0
    discovery_interval_s: float = 60.0
