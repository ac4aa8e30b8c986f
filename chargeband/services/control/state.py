"""
Control State Dataclasses

Data structures for the control loop: telemetry readings, decisions,
loop phases and the events multiplexed onto the loop's queue.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from ...common.config import ChargeState, SwitchState


@dataclass(frozen=True)
class BatteryReading:
    """One battery telemetry sample; percent is -1 when unknown"""
    percent: int
    charge_state: ChargeState
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc), compare=False
    )

    @property
    def is_indeterminate(self) -> bool:
        return self.percent == -1 or self.charge_state in (
            ChargeState.UNDETERMINED,
            ChargeState.NO_BATTERY,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "percent": self.percent,
            "charge_state": self.charge_state.value,
        }


class PowerAction(str, Enum):
    """Command for the smart switch"""
    TURN_ON = "turn_on"
    TURN_OFF = "turn_off"

    @property
    def turns_on(self) -> bool:
        return self is PowerAction.TURN_ON

    @property
    def switch_state(self) -> SwitchState:
        return SwitchState.ON if self.turns_on else SwitchState.OFF


@dataclass(frozen=True)
class ControlDecision:
    """Output from the decision function"""
    action: PowerAction
    fatal: bool = False
    reason: str = ""


class LoopPhase(str, Enum):
    SEARCHING = "searching"
    BOUND = "bound"
    POLLING = "polling"
    TERMINATED = "terminated"


# Events posted into the control loop's queue

@dataclass(frozen=True)
class DeviceFound:
    device: Any  # services.device.base.DiscoveredDevice


@dataclass(frozen=True)
class PollTick:
    generation: int = 0  # binding whose timer sent the tick


@dataclass(frozen=True)
class SwitchStateChanged:
    device_name: str
    state: SwitchState


@dataclass(frozen=True)
class StopRequested:
    reason: str = "stop requested"
