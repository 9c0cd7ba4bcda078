"""
Periodic task runner.

Each periodic unit of work runs as an asyncio task that sleeps on a shared
stop event and hands its blocking body to a thread pool, so a slow sensor
read or calibration never stalls the other tasks.
"""

import asyncio
import logging
from concurrent.futures import Executor
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Calls ``body`` every ``interval`` seconds until the stop event is set.

    An exception raised by the body is logged and the task carries on with
    the next tick.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        body: Callable[[], Any],
        stop_event: asyncio.Event,
        executor: Optional[Executor] = None,
        run_immediately: bool = False,
    ):
        """
        Args:
            name: Task name used in logs
            interval: Seconds between two ticks
            body: Blocking callable run once per tick
            stop_event: Shared cancellation signal
            executor: Pool the body runs in, the loop default if None
            run_immediately: Run one tick before the first wait
        """
        self.name = name
        self.interval = interval
        self.body = body
        self.stop_event = stop_event
        self.executor = executor
        self.run_immediately = run_immediately
        self.ticks = 0
        self.failures = 0

    async def _tick(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(self.executor, self.body)
        except Exception as e:
            self.failures += 1
            logger.error(f"Task '{self.name}' tick failed: {type(e).__name__}: {e}", exc_info=True)
        finally:
            self.ticks += 1

    async def run(self) -> None:
        """Tick until the stop event is set."""
        logger.debug(f"Task '{self.name}' started (interval: {self.interval}s)")
        try:
            if self.run_immediately and not self.stop_event.is_set():
                await self._tick()

            while not self.stop_event.is_set():
                try:
                    await asyncio.wait_for(self.stop_event.wait(), timeout=self.interval)
                    break
                except asyncio.TimeoutError:
                    await self._tick()
        finally:
            logger.debug(f"Task '{self.name}' exiting after {self.ticks} ticks")
