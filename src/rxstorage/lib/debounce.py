"""
Asyncio debouncer.

Collapses a burst of submitted values into a single callback invocation
with the last value, once no new value has arrived for ``delay`` seconds.
Only the quiet-period timer is cancelled by a newer submission; a callback
that has already started runs to completion.
"""

import asyncio
from typing import Awaitable, Callable, Generic, TypeVar

from rxstorage.lib import logs

LOG = logs.logger(__file__)

T = TypeVar("T")


class Debouncer(Generic[T]):
    """
    Trailing-edge debouncer bound to the running event loop.

    Attributes:
        delay: Quiet period in seconds.
    """

    def __init__(self, delay: float, callback: Callable[[T], Awaitable[None]]) -> None:
        self.delay = delay
        self._callback = callback
        self._timer: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True while a timer is waiting for the quiet period to elapse."""
        return self._timer is not None and not self._timer.done()

    def submit(self, value: T) -> None:
        """Restart the quiet period with a new value. Requires a running loop."""
        if self._timer is not None:
            self._timer.cancel()
        task = asyncio.get_running_loop().create_task(self._run(value))
        self._timer = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, value: T) -> None:
        await asyncio.sleep(self.delay)
        # Detach so a later submit cannot cancel the callback mid-flight.
        if self._timer is asyncio.current_task():
            self._timer = None
        await self._callback(value)

    async def drain(self) -> None:
        """Wait until every scheduled timer and started callback has finished."""
        while True:
            tasks = [task for task in self._tasks if not task.done()]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    def cancel(self) -> None:
        """Cancel the pending timer and any callback still running."""
        for task in list(self._tasks):
            task.cancel()
        self._timer = None
