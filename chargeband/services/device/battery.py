"""
Battery Telemetry - psutil

Reads the host battery through psutil.sensors_battery(). The call is
blocking, so it runs in a worker thread.
"""

import asyncio

import psutil

from ...common.config import ChargeState
from ...common.exceptions import TelemetryTransportError
from ...common.logging_setup import get_service_logger
from ..control.state import BatteryReading

logger = get_service_logger("device.battery")


def reading_from_psutil(battery) -> BatteryReading:
    """
    Map a psutil battery tuple onto a BatteryReading.

    Args:
        battery: psutil's sbattery namedtuple, or None when there is no battery

    Returns:
        BatteryReading (percent -1 when there is no battery)
    """
    if battery is None:
        return BatteryReading(percent=-1, charge_state=ChargeState.NO_BATTERY)

    percent = battery.percent
    if percent is None:
        return BatteryReading(percent=-1, charge_state=ChargeState.UNDETERMINED)

    percent = max(0, min(100, int(round(percent))))

    if battery.power_plugged is None:
        state = ChargeState.UNDETERMINED
    elif battery.power_plugged:
        state = ChargeState.FULL if percent >= 100 else ChargeState.CHARGING
    else:
        state = ChargeState.DISCHARGING

    return BatteryReading(percent=percent, charge_state=state)


class PsutilBatterySource:
    """Battery telemetry source backed by psutil"""

    async def read_battery(self) -> BatteryReading:
        try:
            battery = await asyncio.to_thread(self._sensors_battery)
        except TelemetryTransportError:
            raise
        except (psutil.Error, OSError, RuntimeError) as e:
            raise TelemetryTransportError(f"battery read failed: {e}", cause=e) from e

        reading = reading_from_psutil(battery)
        logger.debug(
            f"Battery: {reading.percent}% ({reading.charge_state.value})",
            extra=reading.to_dict(),
        )
        return reading

    @staticmethod
    def _sensors_battery():
        sensors_battery = getattr(psutil, "sensors_battery", None)
        if sensors_battery is None:
            raise TelemetryTransportError("battery sensors are not supported on this platform")
        return sensors_battery()
