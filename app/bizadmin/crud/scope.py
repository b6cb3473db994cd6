from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

R = TypeVar("R")


async def call_service(fn: Callable[..., Any], *args: Any) -> Any:
    """Invoke a collaborator that may be a coroutine function or a plain function."""
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class TaskScope:
    """
    Cancellation scope for one screen activation.

    Every asynchronous unit of work an engine starts is run through the scope;
    ``close()`` cancels whatever is still pending and, from then on, ``active``
    is False so continuations know not to touch engine state.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()
        self._closed = False
        self._generations: dict[str, int] = {}
        self._latest: dict[str, asyncio.Task[Any]] = {}

    @property
    def active(self) -> bool:
        return not self._closed

    def spawn(self, coro: Awaitable[R]) -> asyncio.Task[R]:
        if self._closed:
            if inspect.iscoroutine(coro):
                coro.close()
            raise RuntimeError("TaskScope is closed")
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def run(self, coro: Awaitable[R]) -> R:
        """Await `coro` as a task owned by this scope."""
        return await self.spawn(coro)

    def replace(self, channel: str, coro: Awaitable[R]) -> tuple[asyncio.Task[R], int]:
        """
        Cancel-and-replace: cancel the in-flight task on `channel` (if any),
        start `coro` in its place and return it with its generation token.
        """
        previous = self._latest.get(channel)
        if previous is not None and not previous.done():
            previous.cancel()
        task = self.spawn(coro)
        self._latest[channel] = task
        return task, self.next_generation(channel)

    def next_generation(self, channel: str) -> int:
        """Start a new request on `channel`; older requests on it become stale."""
        gen = self._generations.get(channel, 0) + 1
        self._generations[channel] = gen
        return gen

    def is_current(self, channel: str, generation: int) -> bool:
        return self.active and self._generations.get(channel) == generation

    @property
    def pending(self) -> int:
        return sum(1 for t in self._tasks if not t.done())

    def close(self) -> None:
        self._closed = True
        for task in list(self._tasks):
            if not task.done():
                task.cancel()
        self._tasks.clear()
        self._latest.clear()
