"""Metric processor - periodic aggregation, recompute queue and rank refresh."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Protocol

import duckdb
from loguru import logger

from app.clock import utcnow
from app.repositories.common import MetricUpdateQueueRepository, WatermarkRepository
from app.services.common.job import JobContext
from app.services.metrics.rank import RankConfig, RankTableSwap
from settings import METRIC_UPDATE_INTERVAL


@dataclass
class MetricContext:
    """Everything an aggregation pass gets to work with."""

    name: str
    db: duckdb.DuckDBPyConnection
    analytics: duckdb.DuckDBPyConnection
    last_update: datetime
    job: JobContext
    queued_ids: list[int] = field(default_factory=list)
    run_started_at: datetime | None = None
    stats: dict[str, Any] = field(default_factory=dict)


class Aggregator(Protocol):
    async def update(self, ctx: MetricContext) -> None: ...


class DayClearer(Protocol):
    async def clear_day(self, ctx: MetricContext) -> None: ...


class RankRefresher(Protocol):
    async def refresh(self, ctx: MetricContext) -> None: ...


class MetricProcessor:
    """Owns one named periodic metric job.

    ``update`` aggregates analytics events since the watermark; ``refresh_rank``
    rebuilds the rank table on its own, longer interval; ``queue_update``
    lets write paths ask for a recompute before the next scheduled pass.
    Watermarks always store the run's start time so events arriving during a
    pass are picked up by the next one.
    """

    def __init__(
        self,
        name: str,
        aggregator: Aggregator,
        *,
        db: duckdb.DuckDBPyConnection,
        analytics: duckdb.DuckDBPyConnection | None = None,
        watermarks: WatermarkRepository | None = None,
        queue: MetricUpdateQueueRepository | None = None,
        day_clearer: DayClearer | None = None,
        rank: RankConfig | None = None,
        rank_refresher: RankRefresher | None = None,
        update_interval: timedelta = timedelta(seconds=METRIC_UPDATE_INTERVAL),
        clock: Callable[[], datetime] = utcnow,
        disabled: bool = False,
    ):
        self.name = name
        self._aggregator = aggregator
        self._db = db
        self._analytics = analytics if analytics is not None else db
        self._watermarks = watermarks or WatermarkRepository(db)
        self._queue = queue or MetricUpdateQueueRepository(db)
        self._day_clearer = day_clearer
        self.rank = rank
        self._rank_refresher = rank_refresher
        self.update_interval = update_interval
        self._clock = clock
        self.disabled = disabled
        self._log = logger.bind(job=self.job_key)

    @property
    def job_key(self) -> str:
        return f"metric:{self.name.lower()}"

    @property
    def rank_job_key(self) -> str:
        return f"rank:{self.name.lower()}"

    def _context(self, last_update: datetime, job: JobContext) -> MetricContext:
        return MetricContext(
            name=self.name,
            db=self._db,
            analytics=self._analytics,
            last_update=last_update,
            job=job,
        )

    async def update(self, job: JobContext | None = None, force: bool = False) -> bool:
        """Run one aggregation pass if due. Returns True when a pass ran."""
        if self.disabled:
            self._log.debug("Disabled, skipping update")
            return False

        job = job or JobContext(self.job_key)
        last_update = self._watermarks.get(self.job_key)
        now = self._clock()
        if not force and now - last_update < self.update_interval:
            self._log.debug("Not due yet (last run {})", last_update)
            return False

        ctx = self._context(last_update, job)
        ctx.run_started_at = now
        ctx.queued_ids = self._queue.get_ids(self.name, before=now)

        if last_update.date() != now.date() and self._day_clearer is not None:
            self._log.info("First run of {}, clearing day metrics", now.date())
            await self._day_clearer.clear_day(ctx)

        self._log.info("Updating metrics since {} ({} queued)", last_update, len(ctx.queued_ids))
        try:
            await self._aggregator.update(ctx)
            job.check_if_canceled()
        except Exception as e:
            self._log.error("Update failed, watermark kept at {}: {}", last_update, e)
            raise

        self._watermarks.set(self.job_key, now)
        self._queue.remove_before(self.name, now)
        self._log.info("Metrics updated {}", ctx.stats or "")
        return True

    async def refresh_rank(self, job: JobContext | None = None, force: bool = False) -> bool:
        """Rebuild the rank table if due. Returns True when it was rebuilt."""
        if self.disabled or self.rank is None:
            self._log.debug("No rank table to refresh")
            return False

        job = job or JobContext(self.rank_job_key)
        last_refresh = self._watermarks.get(self.rank_job_key)
        now = self._clock()
        if not force and now - last_refresh < self.rank.refresh_interval:
            self._log.debug("Rank not due yet (last refresh {})", last_refresh)
            return False

        ctx = self._context(last_refresh, job)
        ctx.run_started_at = now
        if self._rank_refresher is not None:
            await self._rank_refresher.refresh(ctx)
        else:
            RankTableSwap(self._db, self.rank).run()
        job.check_if_canceled()

        self._watermarks.set(self.rank_job_key, now)
        return True

    async def queue_update(self, ids: int | Iterable[int]) -> int:
        """Flag entities for recomputation on the next pass."""
        if isinstance(ids, int):
            ids = [ids]
        return self._queue.enqueue(self.name, ids, self._clock())
