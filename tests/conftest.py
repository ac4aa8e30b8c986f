"""Fixtures and fakes for testing."""
import asyncio

import pytest

from chargeband.common.config import ChargeState, ControlConfig, SwitchState
from chargeband.common.exceptions import SwitchCommandError
from chargeband.services.control.state import BatteryReading
from chargeband.services.device.base import DiscoveredDevice, SWITCH_DEVICE_TYPE


class FakeBattery:
    """Returns queued readings; queued exceptions are raised"""

    def __init__(self, readings):
        self.readings = list(readings)
        self.reads = 0

    async def read_battery(self):
        self.reads += 1
        item = self.readings.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class FakeSwitch:
    def __init__(self, name="Charger", fail=False):
        self.name = name
        self.fail = fail
        self.commands = []
        self.closed = False
        self._callbacks = []

    async def set_power(self, on):
        if self.fail:
            raise SwitchCommandError(
                "no route to host",
                device_name=self.name,
                requested_state="on" if on else "off",
            )
        self.commands.append(on)

    def on_state_changed(self, callback):
        self._callbacks.append(callback)
        return lambda: self._callbacks.remove(callback)

    def emit(self, state: SwitchState):
        for callback in list(self._callbacks):
            callback(state)

    @property
    def subscriber_count(self):
        return len(self._callbacks)

    async def close(self):
        self.closed = True


class FakeLocator:
    """Reports the given devices on start, then calls `after` if set"""

    def __init__(self, devices=(), after=None):
        self.devices = list(devices)
        self.after = after
        self.started = False
        self.stopped = False
        self.on_found = None

    async def start(self, on_found):
        self.started = True
        self.on_found = on_found
        for device in self.devices:
            on_found(device)
        if self.after:
            self.after()

    async def stop(self):
        self.stopped = True


class FakeTimer:
    def __init__(self, interval_seconds, callback, name="unnamed"):
        self.interval = interval_seconds
        self.callback = callback
        self.name = name
        self.started = False
        self.stop_calls = 0

    async def start(self):
        self.started = True

    def stop(self):
        self.stop_calls += 1

    @property
    def active(self):
        return self.started and self.stop_calls == 0

    async def fire(self):
        await self.callback()


class TimerFactory:
    def __init__(self):
        self.instances = []

    def __call__(self, interval_seconds, callback, name="unnamed"):
        timer = FakeTimer(interval_seconds, callback, name)
        self.instances.append(timer)
        return timer

    @property
    def active(self):
        return [t for t in self.instances if t.active]


def reading(percent, state=ChargeState.DISCHARGING):
    return BatteryReading(percent=percent, charge_state=state)


def switch_device(switch, host="192.168.1.20"):
    return DiscoveredDevice(
        name=switch.name,
        device_type=SWITCH_DEVICE_TYPE,
        host=host,
        actuator=switch,
    )


async def wait_for(predicate, timeout=1.0):
    """Yield to the event loop until predicate() holds"""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.001)


@pytest.fixture
def config():
    """Target 70% +/- 10%, band [60, 80)."""
    return ControlConfig(
        switch_name="Charger",
        target_percent=70,
        tolerance_percent=10,
        interval_minutes=5,
    )


@pytest.fixture
def timers():
    return TimerFactory()


@pytest.fixture
def raw_settings():
    """Valid settings mapping as loaded from config.yaml."""
    return {
        "switchName": "Charger",
        "percentTarget": 70,
        "percentTolerance": 10,
        "batteryCheckIntervalMinutes": 5,
        "verboseLog": False,
    }
