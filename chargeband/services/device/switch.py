"""
Smart Switch - python-kasa

Wraps a TP-Link Kasa plug or wall switch. Kasa devices do not push
state changes. The observed state is refreshed after every command and
whenever a discovery sweep sees the device again; subscribers are
notified when it differs from the last one seen.
"""

import asyncio

from kasa import Device, KasaException

from ...common.config import SwitchState
from ...common.exceptions import SwitchCommandError
from ...common.logging_setup import get_service_logger
from .base import StateCallback, Unsubscribe

logger = get_service_logger("device.switch")


class KasaSwitch:
    """Switch actuator for a discovered kasa device"""

    def __init__(self, device: Device, command_timeout_s: float = 10.0):
        self.device = device
        self.name = device.alias or device.host
        self.command_timeout_s = command_timeout_s

        self._observed: SwitchState | None = None
        self._callbacks: list[StateCallback] = []

    @property
    def observed_state(self) -> SwitchState | None:
        return self._observed

    async def set_power(self, on: bool) -> None:
        """
        Turn the switch on or off and refresh its observed state.

        Raises:
            SwitchCommandError: the device did not accept the command
        """
        requested = SwitchState.ON if on else SwitchState.OFF
        try:
            command = self.device.turn_on() if on else self.device.turn_off()
            await asyncio.wait_for(command, self.command_timeout_s)
            await asyncio.wait_for(self.device.update(), self.command_timeout_s)
        except (KasaException, OSError, asyncio.TimeoutError) as e:
            raise SwitchCommandError(
                f"{self.name}: could not switch {requested.value}: {e}",
                device_name=self.name,
                requested_state=requested.value,
            ) from e

        self.observe(self.device.is_on)

    def on_state_changed(self, callback: StateCallback) -> Unsubscribe:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def close(self) -> None:
        self._callbacks.clear()
        try:
            await self.device.disconnect()
        except (KasaException, OSError) as e:
            logger.debug(f"Disconnect from {self.name} failed: {e}")

    def observe(self, is_on: bool) -> None:
        """Record the current on/off state; subscribers hear about changes only"""
        state = SwitchState.ON if is_on else SwitchState.OFF
        if state == self._observed:
            return
        self._observed = state
        for callback in list(self._callbacks):
            callback(state)
