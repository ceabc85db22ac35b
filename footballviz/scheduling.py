"""
Event-loop timing helpers.

- Debouncer: collapse bursts of edits into one call (query stats refresh)
- Throttle: cap the rate of a high-frequency stream while always delivering
  the latest value (cursor broadcast)

Both run callbacks on the running asyncio loop and never block it.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Run an async callback once activity has been quiet for `delay` seconds.

    Example:
        debouncer = Debouncer(0.3, builder.refresh_stats)
        debouncer.trigger()  # called on every edit
        await debouncer.flush()
    """

    def __init__(self, delay: float, callback: Callable[[], Awaitable[Any]]):
        self.delay = delay
        self.callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self) -> None:
        """(Re)start the quiet period. Must be called from a running loop."""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def flush(self) -> None:
        """Wait for a pending run to finish."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        if self.delay > 0:
            await asyncio.sleep(self.delay)
        try:
            await self.callback()
        except Exception:
            # Nobody awaits a debounced task unless flush() is called
            logger.exception(f"Debounced call {getattr(self.callback, '__name__', self.callback)} failed")
            raise


class Throttle:
    """
    Emit at most once per `interval` seconds.

    The first value in a window goes out immediately; later values in the
    same window replace each other and the last one is flushed when the
    window closes, so the final position of a burst is never lost.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[Any], Awaitable[Any]],
        clock: Callable[[], float] = time.monotonic,
    ):
        self.interval = interval
        self.callback = callback
        self.clock = clock
        self._last_emit: Optional[float] = None
        self._pending: Any = None
        self._has_pending = False
        self._flush_task: Optional[asyncio.Task] = None
        self.emitted = 0
        self.dropped = 0

    async def submit(self, value: Any) -> None:
        now = self.clock()
        if self._last_emit is None or now - self._last_emit >= self.interval:
            self._last_emit = now
            self.emitted += 1
            await self.callback(value)
            return

        if self._has_pending:
            self.dropped += 1
        self._pending = value
        self._has_pending = True
        if self._flush_task is None or self._flush_task.done():
            remaining = self.interval - (now - self._last_emit)
            self._flush_task = asyncio.get_running_loop().create_task(
                self._flush_later(remaining)
            )

    async def _flush_later(self, delay: float) -> None:
        await asyncio.sleep(max(delay, 0))
        if not self._has_pending:
            return
        value = self._pending
        self._pending = None
        self._has_pending = False
        self._last_emit = self.clock()
        self.emitted += 1
        await self.callback(value)

    async def flush(self) -> None:
        """Wait for the trailing emission, if any."""
        if self._flush_task is not None:
            await self._flush_task

    def cancel(self) -> None:
        if self._flush_task is not None and not self._flush_task.done():
            self._flush_task.cancel()
        self._flush_task = None
        self._pending = None
        self._has_pending = False
