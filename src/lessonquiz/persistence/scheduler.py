"""Single-slot debounce timer on the running asyncio loop."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

SaveCallback = Callable[[], Awaitable[None]]


class DebounceTimer:
    """
    Holds at most one pending callback.

    ``schedule`` replaces whatever is pending and restarts the delay, so a
    burst of changes results in a single call once things go quiet. Callbacks
    that already fired keep running even if the timer is cancelled.
    """

    def __init__(self, delay: float):
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._callback: SaveCallback | None = None
        self._running: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """Whether a callback is waiting for its delay to pass."""
        return self._handle is not None

    def schedule(self, callback: SaveCallback) -> bool:
        """
        Run ``callback`` after the delay, dropping any earlier pending one.

        Outside a running event loop nothing is scheduled.

        Returns:
            Whether the callback was scheduled
        """
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; skipping debounced callback")
            return False
        self._callback = callback
        self._handle = loop.call_later(self.delay, self._fire)
        return True

    def cancel(self) -> bool:
        """Drop the pending callback; returns whether there was one."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        self._callback = None
        return True

    def _take(self) -> SaveCallback | None:
        callback = self._callback
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._callback = None
        return callback

    def _fire(self) -> None:
        callback = self._take()
        if callback is None:
            return
        task = asyncio.ensure_future(callback())
        self._running.add(task)
        task.add_done_callback(self._done)

    def _done(self, task: asyncio.Task) -> None:
        self._running.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Debounced callback failed: %s", task.exception())

    async def flush(self) -> bool:
        """Run the pending callback now instead of waiting; returns whether one ran."""
        callback = self._take()
        if callback is None:
            return False
        await callback()
        return True

    async def drain(self) -> None:
        """Wait for callbacks that have already fired."""
        if self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)
