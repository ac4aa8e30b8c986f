"""
Device Interfaces

The control loop only depends on these interfaces. Concrete adapters
(psutil battery, kasa switch and locator) live beside them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol

from ...common.config import SwitchState

if TYPE_CHECKING:
    from ..control.state import BatteryReading

SWITCH_DEVICE_TYPE = "switch"

StateCallback = Callable[[SwitchState], None]
Unsubscribe = Callable[[], None]


class BatterySource(Protocol):
    async def read_battery(self) -> BatteryReading:
        """Read the current battery state (may raise TelemetryTransportError)"""
        ...


class SwitchActuator(Protocol):
    name: str

    async def set_power(self, on: bool) -> None:
        """Switch power on or off (may raise SwitchCommandError)"""
        ...

    def on_state_changed(self, callback: StateCallback) -> Unsubscribe:
        """Register for observed state changes; returns an unsubscribe function"""
        ...

    async def close(self) -> None:
        ...


@dataclass(frozen=True)
class DiscoveredDevice:
    """A device reported by a locator"""
    name: str
    device_type: str
    host: str
    actuator: Any  # SwitchActuator for switches, None otherwise

    @property
    def is_switch(self) -> bool:
        return self.device_type == SWITCH_DEVICE_TYPE


FoundCallback = Callable[[DiscoveredDevice], Awaitable[None] | None]


class DeviceLocator(Protocol):
    async def start(self, on_found: FoundCallback) -> None:
        """Begin discovery; on_found may fire repeatedly for the same device"""
        ...

    async def stop(self) -> None:
        ...
