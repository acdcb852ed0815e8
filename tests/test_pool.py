"""Tests for the bounded concurrency pool."""

import asyncio

import pytest

from monday_archive.pool import run_pool


@pytest.mark.asyncio
async def test_never_exceeds_limit():
    """No more than ``limit`` tasks run at the same time."""
    running = 0
    peak = 0

    async def task(_):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1

    await run_pool(range(20), 3, task)
    assert peak == 3


@pytest.mark.asyncio
async def test_failures_do_not_cancel_siblings():
    """A failing task is reported and every other task still completes."""
    done = []

    async def task(n):
        await asyncio.sleep(0.001 * n)
        if n == 2:
            raise RuntimeError("boom")
        done.append(n)

    outcomes = await run_pool(range(6), 2, task)
    assert sorted(done) == [0, 1, 3, 4, 5]
    assert [o is None for o in outcomes] == [True, True, False, True, True, True]
    assert str(outcomes[2]) == "boom"


@pytest.mark.asyncio
async def test_empty_input():
    async def task(_):
        raise AssertionError("not called")

    assert await run_pool([], 5, task) == []
