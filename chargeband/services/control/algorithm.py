"""
Control Algorithm - Hysteresis Band

Pure decision function mapping a battery reading to a switch command.
No state is read or written here; the same inputs always produce the
same decision.
"""

from ...common.config import ChargeState, ControlConfig
from .state import BatteryReading, ControlDecision, PowerAction


def decide(reading: BatteryReading, config: ControlConfig) -> ControlDecision:
    """
    Decide whether the charger should be powered.

    Rules, first match wins:
    1. Unknown percent or state -> on, and the cycle is fatal
    2. At or above target + tolerance -> off
    3. Below target - tolerance -> on
    4. Charging inside the band -> on (ride the charge up to the ceiling)
    5. Otherwise -> off

    Args:
        reading: Fresh battery reading
        config: Resolved control parameters

    Returns:
        ControlDecision with the action to issue
    """
    if reading.is_indeterminate:
        return ControlDecision(
            action=PowerAction.TURN_ON,
            fatal=True,
            reason=(
                f"battery state cannot be determined "
                f"(percent={reading.percent}, state={reading.charge_state.value})"
            ),
        )

    percent = reading.percent

    if percent >= config.upper_bound:
        return ControlDecision(PowerAction.TURN_OFF, reason="at or above band ceiling")

    if percent < config.lower_bound:
        return ControlDecision(PowerAction.TURN_ON, reason="below band floor")

    if reading.charge_state == ChargeState.CHARGING:
        return ControlDecision(PowerAction.TURN_ON, reason="charging towards band ceiling")

    return ControlDecision(PowerAction.TURN_OFF, reason="inside band, not charging")
