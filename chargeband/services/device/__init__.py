"""
Device Service - battery telemetry and smart switch adapters

Responsibilities:
- Read host battery state (psutil)
- Discover smart switches on the local network (python-kasa)
- Switch charger power on/off
"""

from .base import (
    BatterySource,
    DeviceLocator,
    DiscoveredDevice,
    SwitchActuator,
    SWITCH_DEVICE_TYPE,
)
from .battery import PsutilBatterySource, reading_from_psutil
from .locator import KasaLocator, describe_device
from .switch import KasaSwitch

__all__ = [
    "BatterySource",
    "DeviceLocator",
    "DiscoveredDevice",
    "SwitchActuator",
    "SWITCH_DEVICE_TYPE",
    "PsutilBatterySource",
    "reading_from_psutil",
    "KasaLocator",
    "describe_device",
    "KasaSwitch",
]
