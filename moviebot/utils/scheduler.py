"""Cancellable delayed actions on the running event loop."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Protocol

from moviebot.logging import logger

AsyncAction = Callable[[], Awaitable[None]]


class Scheduler(Protocol):
    def schedule(self, delay: float, action: AsyncAction) -> asyncio.TimerHandle: ...

    def cancel(self) -> None: ...

    async def aclose(self) -> None: ...


class DebounceTimer:
    """A single logical timer.

    ``schedule`` cancels whatever is still waiting and arms a new delay. When the
    delay elapses the action is started as a task and is no longer affected by
    ``cancel``: only the scheduling is cancellable. Started tasks are tracked so
    ``aclose`` can stop them when the owner goes away.
    """

    def __init__(self, *, name: str = "debounce") -> None:
        self.name = name
        self._pending: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.cancelled()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def schedule(self, delay: float, action: AsyncAction) -> asyncio.TimerHandle:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._pending = loop.call_later(max(delay, 0.0), self._dispatch, action)
        return self._pending

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    async def aclose(self) -> None:
        self.cancel()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def _dispatch(self, action: AsyncAction) -> None:
        self._pending = None
        task = asyncio.ensure_future(action())
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("scheduled_action_failed", timer=self.name, exc_info=exc)


__all__ = ["AsyncAction", "DebounceTimer", "Scheduler"]
