"""
tests/test_concurrent_queue.py

Unit tests for create_concurrent_queue.

Coverage
--------
- Concurrency ceiling respected
- FIFO admission order
- Completion order independent of admission order
- Per-submission result and exception delivery
- Non-positive concurrency clamped to one
"""

from __future__ import annotations

import asyncio

import pytest

from scraper.queue import create_concurrent_queue


def _tracked_task(delays: dict[int, float] | None = None):
    state = {"active": 0, "peak": 0, "started": [], "finished": []}

    async def task(n: int) -> int:
        state["active"] += 1
        state["peak"] = max(state["peak"], state["active"])
        state["started"].append(n)
        await asyncio.sleep((delays or {}).get(n, 0.01))
        state["finished"].append(n)
        state["active"] -= 1
        return n * 10

    return task, state


class TestConcurrencyCeiling:
    def test_never_exceeds_worker_count(self) -> None:
        task, state = _tracked_task()

        async def scenario() -> list[int]:
            submit = create_concurrent_queue(2, task)
            return await asyncio.gather(*(submit(n) for n in range(6)))

        results = asyncio.run(scenario())

        assert results == [0, 10, 20, 30, 40, 50]
        assert state["peak"] == 2

    def test_single_worker_serializes(self) -> None:
        task, state = _tracked_task()

        async def scenario() -> None:
            submit = create_concurrent_queue(1, task)
            await asyncio.gather(*(submit(n) for n in range(4)))

        asyncio.run(scenario())

        assert state["peak"] == 1
        assert state["started"] == [0, 1, 2, 3]
        assert state["finished"] == [0, 1, 2, 3]

    @pytest.mark.parametrize("concurrency", [0, -3])
    def test_non_positive_concurrency_runs_one_at_a_time(self, concurrency: int) -> None:
        task, state = _tracked_task()

        async def scenario() -> None:
            submit = create_concurrent_queue(concurrency, task)
            await asyncio.gather(*(submit(n) for n in range(3)))

        asyncio.run(scenario())

        assert state["peak"] == 1


class TestOrdering:
    def test_admission_follows_submission_order(self) -> None:
        task, state = _tracked_task()

        async def scenario() -> None:
            submit = create_concurrent_queue(3, task)
            await asyncio.gather(*(submit(n) for n in range(9)))

        asyncio.run(scenario())

        assert state["started"] == list(range(9))

    def test_slow_task_does_not_block_later_tasks(self) -> None:
        task, state = _tracked_task(delays={0: 0.1, 1: 0.01, 2: 0.01})

        async def scenario() -> None:
            submit = create_concurrent_queue(2, task)
            await asyncio.gather(*(submit(n) for n in range(3)))

        asyncio.run(scenario())

        assert state["finished"][-1] == 0
        assert state["finished"][:2] == [1, 2]


class TestResultDelivery:
    def test_each_submission_resolves_with_its_own_result(self) -> None:
        async def double(value: int) -> int:
            await asyncio.sleep(0)
            return value * 2

        async def scenario() -> tuple[int, int]:
            submit = create_concurrent_queue(1, double)
            first = submit(3)
            second = submit(5)
            return await second, await first

        assert asyncio.run(scenario()) == (10, 6)

    def test_exception_reaches_submitter_and_releases_slot(self) -> None:
        async def flaky(value: int) -> int:
            await asyncio.sleep(0)
            if value == 1:
                raise ValueError("boom")
            return value

        async def scenario() -> list[object]:
            submit = create_concurrent_queue(1, flaky)
            return await asyncio.gather(
                *(submit(n) for n in range(3)),
                return_exceptions=True,
            )

        results = asyncio.run(scenario())

        assert results[0] == 0
        assert isinstance(results[1], ValueError)
        assert results[2] == 2

    def test_keyword_arguments_are_forwarded(self) -> None:
        async def join(*, prefix: str, value: int) -> str:
            return f"{prefix}{value}"

        async def scenario() -> str:
            submit = create_concurrent_queue(1, join)
            return await submit(prefix="page-", value=7)

        assert asyncio.run(scenario()) == "page-7"
