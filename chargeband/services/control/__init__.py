"""
Control Service - Battery Band Control

Responsibilities:
- Execute the poll-and-decide cycle at the configured interval
- Decide switch power from the battery reading (hysteresis band)
- Bind and rebind to the discovered smart switch
- Fail safe and terminate when telemetry is lost
"""

from .algorithm import decide
from .service import ControlLoop
from .state import BatteryReading, ControlDecision, LoopPhase, PowerAction

__all__ = [
    "BatteryReading",
    "ControlDecision",
    "ControlLoop",
    "LoopPhase",
    "PowerAction",
    "decide",
]
