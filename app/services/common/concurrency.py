"""Bounded concurrency runner and batching helpers."""

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any, TypeVar

from loguru import logger

from app.errors import JobCanceledError
from app.services.common.job import JobContext

T = TypeVar("T")

Task = Callable[[], Awaitable[Any]]


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    """Split items into lists of at most `size` elements."""
    if size < 1:
        raise ValueError(f"Chunk size must be >= 1, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


async def limit_concurrency(
    tasks: Iterable[Task],
    limit: int,
    *,
    return_exceptions: bool = True,
    job: JobContext | None = None,
) -> list[Any]:
    """Run zero-argument async tasks with at most `limit` in flight.

    Tasks are started in iteration order as slots free up; `tasks` may be a
    lazy generator. Every task runs exactly once and a failing task never stops
    the others. Returns one entry per started task, in start order: the task's
    result or the exception it raised. With ``return_exceptions=False`` the
    first error is re-raised once every task has settled.

    If `job` gets canceled no further tasks are started; running tasks are
    awaited and JobCanceledError is raised.
    """
    if limit < 1:
        raise ValueError(f"Concurrency limit must be >= 1, got {limit}")

    source = iter(tasks)
    results: dict[int, Any] = {}
    counter = 0

    def next_task() -> tuple[int, Task] | None:
        nonlocal counter
        if job is not None and job.canceled:
            return None
        task = next(source, None)
        if task is None:
            return None
        index = counter
        counter += 1
        return index, task

    async def worker() -> None:
        while (item := next_task()) is not None:
            index, task = item
            try:
                results[index] = await task()
            except Exception as e:
                logger.debug("Task {} failed: {}", index, e)
                results[index] = e

    await asyncio.gather(*(worker() for _ in range(limit)))

    settled = [results[i] for i in range(counter)]

    if job is not None and job.canceled:
        raise JobCanceledError(f"Job {job.name} canceled after {counter} tasks")

    if not return_exceptions:
        for result in settled:
            if isinstance(result, Exception):
                raise result

    return settled
