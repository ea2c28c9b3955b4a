from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional


class Debouncer:
    """Runs only the last submitted call, ``delay_s`` after it was submitted.

    Submitting again before the delay elapses cancels the pending call, and
    also cancels a call that already started but has not finished.
    """

    def __init__(self, delay_s: float) -> None:
        self.delay_s = delay_s
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def submit(self, fn: Callable[..., Awaitable[Any]], *args: Any) -> asyncio.Task:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(fn, args))
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, fn: Callable[..., Awaitable[Any]], args: tuple) -> Any:
        await asyncio.sleep(self.delay_s)
        return await fn(*args)
