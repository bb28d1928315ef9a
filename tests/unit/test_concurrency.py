"""Tests for the bounded concurrency runner."""

import asyncio

import pytest

from app.errors import JobCanceledError
from app.services.common import JobContext, chunked, limit_concurrency


def make_tasks(count, fail=(), delay=0.001):
    state = {"running": 0, "peak": 0, "calls": [0] * count}

    def make(i):
        async def task():
            state["calls"][i] += 1
            state["running"] += 1
            state["peak"] = max(state["peak"], state["running"])
            try:
                await asyncio.sleep(delay * ((i % 3) + 1))
                if i in fail:
                    raise RuntimeError(f"task {i}")
                return i * 10
            finally:
                state["running"] -= 1

        return task

    return [make(i) for i in range(count)], state


class TestLimitConcurrency:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [1, 3, 10, 50])
    async def test_never_exceeds_limit(self, limit):
        tasks, state = make_tasks(25)
        await limit_concurrency(tasks, limit)
        assert state["peak"] <= limit
        assert state["calls"] == [1] * 25

    @pytest.mark.asyncio
    async def test_results_in_start_order(self):
        tasks, _ = make_tasks(7)
        assert await limit_concurrency(tasks, 3) == [0, 10, 20, 30, 40, 50, 60]

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_others(self):
        tasks, state = make_tasks(6, fail={1, 4})
        results = await limit_concurrency(tasks, 2)
        assert state["calls"] == [1] * 6
        assert isinstance(results[1], RuntimeError)
        assert isinstance(results[4], RuntimeError)
        assert results[5] == 50

    @pytest.mark.asyncio
    async def test_reraises_after_all_settled(self):
        tasks, state = make_tasks(6, fail={0})
        with pytest.raises(RuntimeError, match="task 0"):
            await limit_concurrency(tasks, 2, return_exceptions=False)
        assert state["calls"] == [1] * 6

    @pytest.mark.asyncio
    async def test_accepts_generator(self):
        tasks, _ = make_tasks(4)
        assert await limit_concurrency((t for t in tasks), 2) == [0, 10, 20, 30]

    @pytest.mark.asyncio
    async def test_empty(self):
        assert await limit_concurrency([], 4) == []

    @pytest.mark.asyncio
    async def test_invalid_limit(self):
        with pytest.raises(ValueError):
            await limit_concurrency([], 0)

    @pytest.mark.asyncio
    async def test_cancel_stops_new_tasks(self):
        job = JobContext("test")
        started = []

        def make(i):
            async def task():
                started.append(i)
                if i == 2:
                    job.cancel()

            return task

        with pytest.raises(JobCanceledError):
            await limit_concurrency([make(i) for i in range(10)], 1, job=job)
        assert started == [0, 1, 2]


class TestChunked:
    def test_sizes(self):
        assert [len(c) for c in chunked(list(range(1200)), 500)] == [500, 500, 200]

    def test_empty(self):
        assert chunked([], 3) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            chunked([1], 0)


class TestJobContext:
    def test_callbacks_fire_once(self):
        job = JobContext("test")
        calls = []
        job.on_cancel(lambda: calls.append(1))
        job.cancel()
        job.cancel()
        assert calls == [1]
        assert job.canceled

    def test_check(self):
        job = JobContext("test")
        job.check_if_canceled()
        job.cancel()
        with pytest.raises(JobCanceledError):
            job.check_if_canceled()

    def test_interrupting_fires_inside_block(self):
        job = JobContext("test")
        calls = []
        with job.interrupting(lambda: calls.append("query")):
            job.cancel()
        assert calls == ["query"]

    def test_interrupting_scoped_to_block(self):
        job = JobContext("test")
        calls = []
        with job.interrupting(lambda: calls.append("query")):
            pass
        job.cancel()
        assert calls == []
