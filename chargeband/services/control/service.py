"""
Control Service - Battery Band Control Loop

Responsible for:
- Binding to the configured smart switch when discovery reports it
- Polling battery telemetry on a fixed interval
- Issuing one switch command per poll-and-decide cycle
- Tracking the observed switch state
- Failing safe (switch on) and terminating when telemetry is lost

All events (discovery, timer ticks, switch state changes, stop requests)
are posted into one queue and handled serially by run(), so two cycles
never overlap and rebinding never interrupts a cycle in progress.
"""

import asyncio
from typing import Awaitable, Callable

from ...common.config import ControlConfig, SwitchState
from ...common.exceptions import (
    SwitchCommandError,
    TelemetryTransportError,
    TelemetryUnavailableError,
)
from ...common.logging_setup import get_service_logger, log_decision, log_switch_state
from ...common.scheduler import ScheduledLoop
from ..device.base import BatterySource, DeviceLocator, DiscoveredDevice
from .algorithm import decide
from .state import (
    ControlDecision,
    DeviceFound,
    LoopPhase,
    PollTick,
    PowerAction,
    StopRequested,
    SwitchStateChanged,
)

logger = get_service_logger("control")

TimerFactory = Callable[..., ScheduledLoop]


class ControlLoop:
    """
    Control loop for a single smart switch.

    Phases: searching -> bound -> polling, re-entering bound whenever the
    switch is rediscovered, and terminated on a fatal telemetry failure
    or a stop request.
    """

    def __init__(
        self,
        config: ControlConfig,
        telemetry: BatterySource,
        locator: DeviceLocator,
        timer_factory: TimerFactory = ScheduledLoop,
    ):
        self.config = config
        self.telemetry = telemetry
        self.locator = locator
        self._timer_factory = timer_factory

        self.phase = LoopPhase.SEARCHING
        self.switch_state: SwitchState | None = None
        self.cycle_count = 0

        self._device: DiscoveredDevice | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._timer: ScheduledLoop | None = None
        self._tick_pending = False
        self._generation = 0
        self._events: asyncio.Queue = asyncio.Queue()

    @property
    def device(self) -> DiscoveredDevice | None:
        return self._device

    @property
    def timer(self) -> ScheduledLoop | None:
        """The single active polling timer, if bound"""
        return self._timer

    async def run(self) -> None:
        """
        Run until stop() is called.

        Raises:
            TelemetryUnavailableError: battery state could not be determined
            TelemetryTransportError: the battery read failed
        """
        logger.info(f"Looking for {self.config.switch_name}...")
        await self.locator.start(self._on_device_found)

        try:
            while True:
                event = await self._events.get()
                if isinstance(event, StopRequested):
                    logger.info(f"Control loop stopping: {event.reason}")
                    break
                await self._handle(event)
        finally:
            self.phase = LoopPhase.TERMINATED
            await self._shutdown()

    def stop(self, reason: str = "stop requested") -> None:
        """Request a graceful stop (safe to call from signal handlers)"""
        self._events.put_nowait(StopRequested(reason))

    async def _handle(self, event) -> None:
        if isinstance(event, DeviceFound):
            await self._handle_device_found(event.device)
        elif isinstance(event, PollTick):
            if event.generation != self._generation:
                logger.debug("Dropping tick from a released timer")
                return
            self._tick_pending = False
            if self._device is not None:
                await self.poll_and_decide()
        elif isinstance(event, SwitchStateChanged):
            self.switch_state = event.state
            log_switch_state(logger, event.device_name, event.state)

    # Event sources

    def _on_device_found(self, device: DiscoveredDevice) -> None:
        self._events.put_nowait(DeviceFound(device))

    def _on_tick(self, generation: int) -> Callable[[], Awaitable[None]]:
        async def callback() -> None:
            if generation == self._generation and not self._tick_pending:
                self._tick_pending = True
                self._events.put_nowait(PollTick(generation))

        return callback

    def _on_switch_state(self, device_name: str) -> Callable[[SwitchState], None]:
        def callback(state: SwitchState) -> None:
            self._events.put_nowait(SwitchStateChanged(device_name, state))

        return callback

    # Binding

    async def _handle_device_found(self, device: DiscoveredDevice) -> None:
        if not device.is_switch or device.name != self.config.switch_name:
            logger.debug(f"Ignoring {device.device_type} '{device.name}' at {device.host}")
            return

        await self._bind(device)

    async def _bind(self, device: DiscoveredDevice) -> None:
        """Bind (or rebind) to the switch and restart polling"""
        previous = self._device
        self._release_binding()
        self._generation += 1
        if previous is not None and previous.actuator is not device.actuator:
            await previous.actuator.close()

        self._device = device
        self.phase = LoopPhase.BOUND
        self._unsubscribe = device.actuator.on_state_changed(
            self._on_switch_state(device.name)
        )

        logger.info(
            f"Switch found: {device.name}. Will maintain "
            f"{self.config.target_percent}% +/- {self.config.tolerance_percent}%.",
            extra={"device": device.name, "host": device.host},
        )

        # First cycle runs before polling starts; a fatal result never reaches polling
        await self.poll_and_decide()

        self._timer = self._timer_factory(
            self.config.interval_seconds,
            self._on_tick(self._generation),
            name="battery-poll",
        )
        await self._timer.start()
        self.phase = LoopPhase.POLLING

    def _release_binding(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._tick_pending = False

    # Poll-and-decide

    async def poll_and_decide(self) -> ControlDecision:
        """
        Read telemetry, decide, and issue the switch command.

        Raises:
            TelemetryUnavailableError: after forcing the switch on
            TelemetryTransportError: after forcing the switch on
        """
        try:
            reading = await self.telemetry.read_battery()
        except TelemetryTransportError:
            await self._issue(PowerAction.TURN_ON)
            raise
        except Exception as e:
            await self._issue(PowerAction.TURN_ON)
            raise TelemetryTransportError(f"battery read failed: {e}", cause=e) from e

        decision = decide(reading, self.config)
        self.cycle_count += 1

        if self.config.verbose and not decision.fatal:
            log_decision(logger, self.config, reading.percent, decision.action)

        await self._issue(decision.action)

        if decision.fatal:
            raise TelemetryUnavailableError(
                f"Battery charge state and percent cannot be accessed "
                f"({decision.reason}). Ensured switch is on; terminating.",
                reading=reading,
            )

        return decision

    async def _issue(self, action: PowerAction) -> None:
        """Send the command even if the switch is believed to be in that state already"""
        if self._device is None:
            return

        try:
            await self._device.actuator.set_power(action.turns_on)
        except SwitchCommandError as e:
            # Lost commands are retried by the next cycle
            logger.error(str(e), extra={"device": e.device_name, "action": action.value})
            return

        self.switch_state = action.switch_state

    async def _shutdown(self) -> None:
        self._release_binding()
        await self.locator.stop()
        if self._device is not None:
            await self._device.actuator.close()
