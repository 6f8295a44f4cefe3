"""FIFO concurrency limiter for asyncio tasks."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")


class ConcurrencyLimiter:
    """Admit at most ``max_concurrency`` running tasks; queue the rest in FIFO order.

    ``schedule`` returns a future that settles exactly once with the task's
    value or exception. A finished task frees its slot and starts the oldest
    queued task, so the slot is handed over without ever exceeding the bound.
    """

    def __init__(self, max_concurrency: int) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.max_concurrency = max_concurrency
        self._active = 0
        self._queue: deque[Callable[[], None]] = deque()
        self._running: set[asyncio.Task[None]] = set()

    @property
    def active(self) -> int:
        return self._active

    @property
    def pending(self) -> int:
        return len(self._queue)

    def schedule(self, task: Callable[[], Awaitable[T]]) -> asyncio.Future[T]:
        """Queue ``task`` and start it as soon as a slot is free."""

        loop = asyncio.get_running_loop()
        result: asyncio.Future[T] = loop.create_future()

        def start() -> None:
            runner = loop.create_task(self._run(task, result))
            self._running.add(runner)
            runner.add_done_callback(self._running.discard)

        self._queue.append(start)
        self._run_next()
        return result

    async def _run(self, task: Callable[[], Awaitable[T]], result: asyncio.Future[T]) -> None:
        try:
            value = await task()
        except asyncio.CancelledError:
            result.cancel()
            raise
        except Exception as error:  # noqa: BLE001
            if not result.done():
                result.set_exception(error)
        else:
            if not result.done():
                result.set_result(value)
        finally:
            self._active -= 1
            self._run_next()

    def _run_next(self) -> None:
        if not self._queue or self._active >= self.max_concurrency:
            return
        self._active += 1
        start = self._queue.popleft()
        start()
