"""
Custom Exception Classes for the ChargeBand Controller

Hierarchical exception structure for error handling across services.
Non-recoverable errors end the process; recoverable ones are logged.
"""

from typing import Any


class ChargeBandError(Exception):
    """Base exception for all ChargeBand errors"""

    def __init__(self, message: str, recoverable: bool = True):
        self.message = message
        self.recoverable = recoverable
        super().__init__(message)


class ConfigError(ChargeBandError):
    """Configuration-related errors"""

    def __init__(self, message: str, recoverable: bool = False):
        super().__init__(f"Config Error: {message}", recoverable)


class ConfigValidationError(ConfigError):
    """One or more control parameters are out of range"""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class TelemetryError(ChargeBandError):
    """Battery telemetry errors"""

    def __init__(self, message: str):
        super().__init__(f"Telemetry Error: {message}", recoverable=False)


class TelemetryUnavailableError(TelemetryError):
    """Battery percent or charge state cannot be determined"""

    def __init__(self, message: str, reading: Any = None):
        self.reading = reading
        super().__init__(message)


class TelemetryTransportError(TelemetryError):
    """The battery read itself failed (unsupported platform, permissions, OS error)"""

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        super().__init__(message)


class SwitchError(ChargeBandError):
    """Smart switch errors"""

    def __init__(self, message: str, device_name: str | None = None):
        self.device_name = device_name
        super().__init__(f"Switch Error: {message}", recoverable=True)


class SwitchCommandError(SwitchError):
    """Switch did not accept a power command"""

    def __init__(
        self,
        message: str,
        device_name: str | None = None,
        requested_state: str | None = None,
    ):
        self.requested_state = requested_state
        super().__init__(message, device_name)


class DiscoveryError(ChargeBandError):
    """A discovery sweep failed"""

    def __init__(self, message: str):
        super().__init__(f"Discovery Error: {message}", recoverable=True)
