"""
Common Utilities

Shared modules used across all services:
- config.py - Configuration dataclasses and enums
- exceptions.py - Custom exception classes
- logging_setup.py - Structured logging setup
- scheduler.py - Repeating interval timer
"""

from .config import (
    ControlConfig,
    RuntimeSettings,
    ChargeState,
    SwitchState,
    LogFormat,
)
from .exceptions import (
    ChargeBandError,
    ConfigError,
    ConfigValidationError,
    TelemetryError,
    TelemetryUnavailableError,
    TelemetryTransportError,
    SwitchError,
    SwitchCommandError,
    DiscoveryError,
)
from .logging_setup import (
    get_service_logger,
    configure_logging,
    log_decision,
    log_switch_state,
)
from .scheduler import ScheduledLoop

__all__ = [
    # Config
    "ControlConfig",
    "RuntimeSettings",
    "ChargeState",
    "SwitchState",
    "LogFormat",
    # Exceptions
    "ChargeBandError",
    "ConfigError",
    "ConfigValidationError",
    "TelemetryError",
    "TelemetryUnavailableError",
    "TelemetryTransportError",
    "SwitchError",
    "SwitchCommandError",
    "DiscoveryError",
    # Logging
    "get_service_logger",
    "configure_logging",
    "log_decision",
    "log_switch_state",
    # Scheduling
    "ScheduledLoop",
]
