"""Bounded concurrency for async tasks."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar

T = TypeVar("T")


async def run_pool(
    items: Iterable[T],
    limit: int,
    task: Callable[[T], Awaitable[object]],
) -> list[BaseException | None]:
    """Run ``task`` for every item with at most ``limit`` running at once.

    Every task is awaited to completion even when some fail. The return value
    holds the exception raised for each item (or None), in item order.
    """
    sem = asyncio.Semaphore(max(1, limit))

    async def worker(item: T) -> None:
        async with sem:
            await task(item)

    outcomes = await asyncio.gather(*(worker(item) for item in items), return_exceptions=True)
    return [outcome if isinstance(outcome, BaseException) else None for outcome in outcomes]
