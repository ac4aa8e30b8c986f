"""
Device Locator - python-kasa discovery

Runs periodic discovery sweeps on the local network. A device is
reported when it first appears and again whenever it reappears after
missing a sweep, so a switch that reconnects gets rebound. Sweeps that
see a bound switch again pass its current state to the actuator, so
changes made outside the controller are reported too.
"""

import asyncio
import inspect

from kasa import Device, DeviceType, Discover, KasaException

from ...common.exceptions import DiscoveryError
from ...common.logging_setup import get_service_logger
from .base import DiscoveredDevice, FoundCallback, SWITCH_DEVICE_TYPE
from .switch import KasaSwitch

logger = get_service_logger("device.locator")

SWITCH_TYPES = (DeviceType.Plug, DeviceType.WallSwitch)


def describe_device(device: Device, switch_name: str | None = None) -> DiscoveredDevice:
    """
    Build a descriptor for a discovered device.

    Only plugs and wall switches named switch_name (any name when None)
    get an actuator; every other device is described without one.
    """
    name = device.alias or ""

    if device.device_type in SWITCH_TYPES:
        wanted = switch_name is None or name == switch_name
        return DiscoveredDevice(
            name=name,
            device_type=SWITCH_DEVICE_TYPE,
            host=device.host,
            actuator=KasaSwitch(device) if wanted else None,
        )

    return DiscoveredDevice(
        name=name,
        device_type=device.device_type.name.lower(),
        host=device.host,
        actuator=None,
    )


class KasaLocator:
    """Periodic kasa discovery"""

    def __init__(
        self,
        switch_name: str | None = None,
        discovery_timeout_s: float = 5.0,
        sweep_interval_s: float = 60.0,
        target: str = "255.255.255.255",
    ):
        self.switch_name = switch_name
        self.discovery_timeout_s = discovery_timeout_s
        self.sweep_interval_s = sweep_interval_s
        self.target = target

        self._present: set[str] = set()
        self._actuators: dict[str, KasaSwitch] = {}
        self._task: asyncio.Task | None = None

    async def start(self, on_found: FoundCallback) -> None:
        if self._task:
            return
        self._task = asyncio.create_task(self._run(on_found), name="kasa-discovery")

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _run(self, on_found: FoundCallback) -> None:
        while True:
            try:
                await self.sweep(on_found)
            except DiscoveryError as e:
                # Missed sweeps are retried, never fatal
                logger.warning(str(e))
            await asyncio.sleep(self.sweep_interval_s)

    async def sweep(self, on_found: FoundCallback) -> list[DiscoveredDevice]:
        """
        Run one discovery sweep.

        Returns:
            Devices reported to on_found in this sweep
        """
        try:
            found = await Discover.discover(
                target=self.target,
                discovery_timeout=self.discovery_timeout_s,
            )
        except (KasaException, OSError) as e:
            raise DiscoveryError(f"discovery sweep failed: {e}") from e

        reported = []
        seen: set[str] = set()

        for host, device in found.items():
            try:
                await device.update()
            except (KasaException, OSError) as e:
                logger.debug(f"Skipping {host}: update failed: {e}")
                continue

            seen.add(host)
            if host in self._present:
                actuator = self._actuators.get(host)
                if actuator is not None:
                    actuator.observe(device.is_on)
                await self._release(device)
                continue

            descriptor = describe_device(device, self.switch_name)
            logger.debug(
                f"Found {descriptor.device_type} '{descriptor.name}' at {host}",
                extra={"host": host, "device_type": descriptor.device_type},
            )
            if descriptor.actuator is None:
                await self._release(device)
            else:
                self._actuators[host] = descriptor.actuator

            reported.append(descriptor)
            result = on_found(descriptor)
            if inspect.isawaitable(result):
                await result

        self._present = seen
        self._actuators = {h: a for h, a in self._actuators.items() if h in seen}
        return reported

    async def _release(self, device: Device) -> None:
        try:
            await device.disconnect()
        except (KasaException, OSError) as e:
            logger.debug(f"Disconnect from {device.host} failed: {e}")
