"""
Repeating Interval Scheduler

Provides ScheduledLoop, the single repeating timer behind the control
loop's polling. Firings are scheduled against a fixed timeline,
so callback execution time does not accumulate as drift, and missed
intervals are skipped rather than queued.

Usage:
    async def on_tick():
        ...

    timer = ScheduledLoop(300.0, on_tick, name="battery-poll")
    await timer.start()

    # Later:
    timer.stop()
"""

import asyncio
import time
from typing import Callable, Awaitable

from .logging_setup import get_service_logger

logger = get_service_logger("scheduler")


class ScheduledLoop:
    """
    Repeating timer running in its own asyncio task.

    The first firing happens one full interval after start(). A stopped
    loop cannot be restarted; create a new one instead.

    Attributes:
        interval: The interval in seconds between executions
        callback: Async function to call each interval
        name: Name for logging/identification
    """

    def __init__(
        self,
        interval_seconds: float,
        callback: Callable[[], Awaitable[None]],
        name: str = "unnamed",
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.interval = interval_seconds
        self.callback = callback
        self.name = name

        self._next_run: float = 0
        self._running = False
        self._stopped = False
        self._task: asyncio.Task | None = None

        # Observability metrics
        self._skipped_count: int = 0
        self._execution_count: int = 0
        self._last_execution_time: float = 0

    async def start(self) -> None:
        """Start the scheduled loop in a background task."""
        if self._running or self._stopped:
            return

        self._running = True
        self._next_run = time.monotonic() + self.interval
        self._task = asyncio.create_task(self._run(), name=f"scheduler:{self.name}")

    def stop(self) -> None:
        """Stop the scheduled loop."""
        self._running = False
        self._stopped = True
        if self._task:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        """Main loop that fires callback at fixed intervals."""
        while self._running:
            sleep_duration = self._next_run - time.monotonic()
            if sleep_duration > 0:
                try:
                    await asyncio.sleep(sleep_duration)
                except asyncio.CancelledError:
                    break

            if not self._running:
                break

            try:
                start = time.monotonic()
                await self.callback()
                self._last_execution_time = time.monotonic() - start
                self._execution_count += 1
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Scheduled callback '{self.name}' error: {e}")

            # Skip missed intervals to catch up (don't queue up missed executions)
            now = time.monotonic()
            skipped = 0
            while self._next_run <= now:
                self._next_run += self.interval
                skipped += 1

            # First skip is expected (the one we just executed)
            if skipped > 1:
                self._skipped_count += skipped - 1
                logger.warning(
                    f"Scheduler '{self.name}' skipped {skipped - 1} intervals "
                    f"(execution took {self._last_execution_time:.3f}s)"
                )

    @property
    def running(self) -> bool:
        return self._running

    @property
    def skipped_count(self) -> int:
        """Number of intervals skipped to catch up."""
        return self._skipped_count

    @property
    def execution_count(self) -> int:
        """Total number of successful executions."""
        return self._execution_count

    def get_stats(self) -> dict:
        """Get scheduler statistics for observability."""
        return {
            "name": self.name,
            "interval_s": self.interval,
            "running": self._running,
            "execution_count": self._execution_count,
            "skipped_count": self._skipped_count,
            "last_execution_s": round(self._last_execution_time, 3),
        }
