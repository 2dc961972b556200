"""
Bounded-concurrency task queue.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

T = TypeVar("T")


def create_concurrent_queue(
    concurrency: int,
    task: Callable[..., Awaitable[T]],
) -> Callable[..., asyncio.Task[T]]:
    """
    Wrap `task` so that at most `concurrency` invocations run at once.

    Each call to the returned function schedules one invocation immediately
    and returns its task; awaiting it yields that invocation's result (or
    raises its exception). Invocations are admitted in submission order.
    Must be called from inside a running event loop.
    """

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _run(*args: Any, **kwargs: Any) -> T:
        async with semaphore:
            return await task(*args, **kwargs)

    def submit(*args: Any, **kwargs: Any) -> asyncio.Task[T]:
        return asyncio.ensure_future(_run(*args, **kwargs))

    return submit
