"""Cancelable periodic refresh tasks for polling views."""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

RefreshCallback = Callable[[], Awaitable[Any]]


class PeriodicRefresher:
    """Runs a coroutine callback every ``interval_seconds`` until stopped.

    Each timeline or analysis view owns one refresher and must stop it on
    teardown; a stopped refresher can be started again.

    Example:
        ```python
        async with PeriodicRefresher(reload_timeline, 30.0, name="timeline"):
            ...
        ```
    """

    def __init__(
        self,
        callback: RefreshCallback,
        interval_seconds: float,
        name: str = "refresher",
        run_immediately: bool = False,
        on_start: Callable[["PeriodicRefresher"], Any] | None = None,
        on_stop: Callable[["PeriodicRefresher"], Any] | None = None,
    ) -> None:
        """Initialize PeriodicRefresher.

        Args:
            callback: Coroutine function invoked on each tick.
            interval_seconds: Seconds between ticks. Must be positive.
            name: Label used in log events.
            run_immediately: Invoke the callback once before the first sleep.
            on_start: Called with the refresher each time start() schedules the loop.
            on_stop: Called with the refresher each time stop() completes.

        Raises:
            ValueError: If interval_seconds is not positive.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._callback = callback
        self._interval_seconds = interval_seconds
        self._name = name
        self._run_immediately = run_immediately
        self._on_start = on_start
        self._on_stop = on_stop
        self._task: asyncio.Task[None] | None = None
        self._tick_count = 0
        self._error_count = 0

    @property
    def interval_seconds(self) -> float:
        return self._interval_seconds

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def tick_count(self) -> int:
        """Number of callback invocations that completed without error."""
        return self._tick_count

    @property
    def error_count(self) -> int:
        return self._error_count

    def start(self) -> None:
        """Schedule the refresh loop on the running event loop.

        Starting an already running refresher is a no-op.
        """
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name=self._name)
        if self._on_start is not None:
            self._on_start(self)

    async def stop(self) -> None:
        """Cancel the refresh loop and wait for it to finish."""
        if self._task and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        if self._on_stop is not None:
            self._on_stop(self)

    async def _run(self) -> None:
        if self._run_immediately:
            await self._tick()
        while True:
            try:
                await asyncio.sleep(self._interval_seconds)
            except asyncio.CancelledError:
                break
            await self._tick()

    async def _tick(self) -> None:
        try:
            await self._callback()
            self._tick_count += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._error_count += 1
            logger.error(
                "Error in periodic refresh",
                refresher=self._name,
                error=str(e),
            )

    async def __aenter__(self) -> "PeriodicRefresher":
        self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.stop()
