"""Test the python-kasa switch and locator adapters."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from kasa import DeviceType, KasaException

from chargeband.common.config import SwitchState
from chargeband.common.exceptions import DiscoveryError, SwitchCommandError
from chargeband.services.device.locator import KasaLocator, describe_device
from chargeband.services.device.switch import KasaSwitch


def mock_device(alias="Charger", host="192.168.1.20", device_type=DeviceType.Plug, is_on=False):
    device = MagicMock()
    device.alias = alias
    device.host = host
    device.device_type = device_type
    device.is_on = is_on
    device.update = AsyncMock()
    device.disconnect = AsyncMock()

    async def turn_on():
        device.is_on = True

    async def turn_off():
        device.is_on = False

    device.turn_on = AsyncMock(side_effect=turn_on)
    device.turn_off = AsyncMock(side_effect=turn_off)
    return device


class TestKasaSwitch:

    @pytest.mark.asyncio
    async def test_set_power_notifies_on_change_only(self):
        device = mock_device()
        switch = KasaSwitch(device)
        states = []
        switch.on_state_changed(states.append)

        await switch.set_power(True)
        await switch.set_power(True)
        await switch.set_power(False)

        assert device.turn_on.await_count == 2
        assert device.turn_off.await_count == 1
        assert device.update.await_count == 3
        assert states == [SwitchState.ON, SwitchState.OFF]
        assert switch.observed_state == SwitchState.OFF

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        switch = KasaSwitch(mock_device())
        states = []
        unsubscribe = switch.on_state_changed(states.append)
        unsubscribe()

        await switch.set_power(True)

        assert states == []

    @pytest.mark.asyncio
    async def test_command_failure_raises_switch_command_error(self):
        device = mock_device()
        device.turn_off = AsyncMock(side_effect=KasaException("timed out"))
        switch = KasaSwitch(device)

        with pytest.raises(SwitchCommandError) as exc_info:
            await switch.set_power(False)

        assert exc_info.value.device_name == "Charger"
        assert exc_info.value.requested_state == "off"
        assert exc_info.value.recoverable is True

    @pytest.mark.asyncio
    async def test_close_disconnects(self):
        device = mock_device()
        device.disconnect = AsyncMock(side_effect=OSError("already closed"))

        await KasaSwitch(device).close()

        device.disconnect.assert_awaited_once()


class TestKasaLocator:

    def test_describe_plug_as_switch(self):
        descriptor = describe_device(mock_device())

        assert descriptor.is_switch
        assert descriptor.name == "Charger"
        assert isinstance(descriptor.actuator, KasaSwitch)

    def test_describe_other_device(self):
        descriptor = describe_device(mock_device(alias="Lamp", device_type=DeviceType.Bulb))

        assert descriptor.device_type == "bulb"
        assert descriptor.actuator is None
        assert not descriptor.is_switch

    @pytest.mark.asyncio
    async def test_sweeps_report_new_and_reappearing_devices(self):
        sweeps = [
            {"192.168.1.20": mock_device()},
            {"192.168.1.20": mock_device()},
            {},
            {"192.168.1.20": mock_device()},
        ]
        found = []
        locator = KasaLocator()

        with patch(
            "chargeband.services.device.locator.Discover.discover",
            AsyncMock(side_effect=sweeps),
        ):
            for _ in sweeps:
                await locator.sweep(found.append)

        assert len(found) == 2
        assert all(d.name == "Charger" and d.is_switch for d in found)
        assert found[0].actuator is not found[1].actuator

    @pytest.mark.asyncio
    async def test_later_sweeps_report_changes_made_outside_the_controller(self):
        sweeps = [
            {"192.168.1.20": mock_device(is_on=False)},
            {"192.168.1.20": mock_device(is_on=False)},
            {"192.168.1.20": mock_device(is_on=True)},
        ]
        found = []
        states = []
        locator = KasaLocator(switch_name="Charger")

        with patch(
            "chargeband.services.device.locator.Discover.discover",
            AsyncMock(side_effect=sweeps),
        ):
            await locator.sweep(found.append)
            switch = found[0].actuator
            switch.on_state_changed(states.append)
            await switch.set_power(True)

            # Toggled off by hand, then back on
            await locator.sweep(found.append)
            await locator.sweep(found.append)

        assert len(found) == 1
        assert states == [SwitchState.ON, SwitchState.OFF, SwitchState.ON]
        assert switch.observed_state == SwitchState.ON

    @pytest.mark.asyncio
    async def test_only_the_configured_switch_gets_an_actuator(self):
        other_plug = mock_device(alias="Lamp Plug", host="192.168.1.21")
        found = []

        with patch(
            "chargeband.services.device.locator.Discover.discover",
            AsyncMock(return_value={
                "192.168.1.20": mock_device(),
                "192.168.1.21": other_plug,
            }),
        ):
            await KasaLocator(switch_name="Charger").sweep(found.append)

        charger, lamp = found
        assert isinstance(charger.actuator, KasaSwitch)
        assert lamp.is_switch and lamp.actuator is None
        other_plug.disconnect.assert_awaited_once()

    def test_describe_unwanted_switch_without_actuator(self):
        descriptor = describe_device(mock_device(alias="Lamp Plug"), switch_name="Charger")

        assert descriptor.is_switch
        assert descriptor.actuator is None

    @pytest.mark.asyncio
    async def test_devices_that_fail_update_are_skipped(self):
        broken = mock_device()
        broken.update = AsyncMock(side_effect=KasaException("auth required"))
        found = []

        with patch(
            "chargeband.services.device.locator.Discover.discover",
            AsyncMock(return_value={"192.168.1.20": broken}),
        ):
            reported = await KasaLocator().sweep(found.append)

        assert reported == []
        assert found == []

    @pytest.mark.asyncio
    async def test_async_callbacks_are_awaited(self):
        on_found = AsyncMock()

        with patch(
            "chargeband.services.device.locator.Discover.discover",
            AsyncMock(return_value={"192.168.1.20": mock_device()}),
        ):
            await KasaLocator().sweep(on_found)

        on_found.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_sweep_failure_raises_discovery_error(self):
        with patch(
            "chargeband.services.device.locator.Discover.discover",
            AsyncMock(side_effect=OSError("network unreachable")),
        ):
            with pytest.raises(DiscoveryError):
                await KasaLocator().sweep(lambda device: None)

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        locator = KasaLocator(sweep_interval_s=60)

        with patch(
            "chargeband.services.device.locator.Discover.discover",
            AsyncMock(return_value={}),
        ):
            await locator.start(lambda device: None)
            await locator.stop()

        assert locator._task is None
