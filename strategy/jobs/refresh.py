"""
strategy/jobs/refresh.py - Periodic refresh of venue data.

Each refresh (order book, arbitrage scan, price chart) runs as its own
asyncio task on a fixed interval.

Rules:
- a failing cycle is logged and the next cycle runs on schedule (no retry)
- stop() cancels the task and waits for it; nothing fires after it returns
- RefreshScope owns a set of tasks and stops all of them on exit
"""

import asyncio
from typing import Awaitable, Callable, List, Optional

from core.exceptions import DuetError, ErrorCode
from core.logging import get_logger, log_error

logger = get_logger(__name__)

RefreshCallback = Callable[[], Awaitable[None]]


class PeriodicTask:
    """
    Usage:
        task = PeriodicTask("order_book", 5.0, refresh_book)
        task.start()
        ...
        await task.stop()
    """

    def __init__(self, name: str, interval_seconds: float, callback: RefreshCallback):
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.name = name
        self.interval_seconds = interval_seconds
        self.callback = callback
        self.cycles = 0
        self.failures = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> bool:
        """One cycle. Returns False when the callback failed."""
        self.cycles += 1
        try:
            await self.callback()
        except asyncio.CancelledError:
            raise
        except DuetError as e:
            self.failures += 1
            log_error(logger, e.code.value, e.message, task=self.name, cycle=self.cycles)
            return False
        except Exception as e:
            self.failures += 1
            log_error(logger, ErrorCode.UNKNOWN.value, str(e), task=self.name, cycle=self.cycles)
            return False
        return True

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=f"refresh:{self.name}")
        logger.debug(
            f"Refresh started: {self.name}",
            extra={"context": {"interval_seconds": self.interval_seconds}},
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug(
            f"Refresh stopped: {self.name}",
            extra={"context": {"cycles": self.cycles, "failures": self.failures}},
        )


class RefreshScope:
    """
    Async context manager owning periodic tasks.

    Usage:
        async with RefreshScope() as scope:
            scope.every("arbitrage", 10.0, scan)
            await shutdown.wait()
    """

    def __init__(self):
        self.tasks: List[PeriodicTask] = []

    def every(self, name: str, interval_seconds: float, callback: RefreshCallback) -> PeriodicTask:
        task = PeriodicTask(name, interval_seconds, callback)
        self.tasks.append(task)
        task.start()
        return task

    async def stop_all(self) -> None:
        tasks, self.tasks = self.tasks, []
        for task in tasks:
            await task.stop()

    async def __aenter__(self) -> "RefreshScope":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop_all()
