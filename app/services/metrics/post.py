"""Post metrics - event aggregation, rank table and cached metric bundles."""

from datetime import datetime, timedelta
from functools import partial
from typing import Any

import duckdb
import polars as pl
from loguru import logger

from app.clock import EPOCH, utcnow
from app.models.post import POST_EVENT_KINDS, POST_RANK_INDEXES, TIMEFRAMES
from app.services.common.concurrency import chunked, limit_concurrency
from app.services.metrics.helpers import calculate_rating, get_metric, sum_metrics
from app.services.metrics.processor import MetricContext
from app.services.metrics.rank import RankConfig

# Event kind -> post_metric column
METRIC_COLUMNS = {
    "View": "view_count",
    "ThumbsUp": "thumbs_up_count",
    "ThumbsDown": "thumbs_down_count",
    "Comment": "comment_count",
    "Collect": "collected_count",
}

TIMEFRAME_DAYS = {"Day": 1, "Week": 7, "Month": 30, "Year": 365, "AllTime": None}

POST_RANK = RankConfig(
    table="post_rank",
    primary_key="post_id",
    indexes=POST_RANK_INDEXES,
)


def _timeframe_cutoffs(now: datetime) -> pl.DataFrame:
    return pl.DataFrame(
        {
            "timeframe": TIMEFRAMES,
            "cutoff": [now - timedelta(days=TIMEFRAME_DAYS[tf]) if TIMEFRAME_DAYS[tf] else EPOCH for tf in TIMEFRAMES],
        },
        schema={"timeframe": pl.Utf8, "cutoff": pl.Datetime("us")},
    )


def count_post_events(
    analytics: duckdb.DuckDBPyConnection,
    ids: list[int],
    now: datetime,
) -> list[tuple]:
    """Event counts per (post, timeframe) for the given posts, zeros included."""
    counts = ",\n".join(
        f"COUNT(e.kind) FILTER (WHERE e.kind = '{kind}') AS {column}" for kind, column in METRIC_COLUMNS.items()
    )
    analytics.register("timeframes_df", _timeframe_cutoffs(now))
    try:
        return analytics.execute(
            f"""
            SELECT i.post_id, tf.timeframe,
                {counts}
            FROM (SELECT UNNEST(?::INTEGER[]) AS post_id) i
            CROSS JOIN timeframes_df tf
            LEFT JOIN post_event e
                ON e.post_id = i.post_id AND e.created_at > tf.cutoff AND e.created_at <= ?
            GROUP BY i.post_id, tf.timeframe
            ORDER BY i.post_id, tf.timeframe
            """,
            [ids, now],
        ).fetchall()
    finally:
        analytics.unregister("timeframes_df")


class PostMetricsAggregator:
    """Recomputes post_metric rows for posts touched since the last pass."""

    def __init__(self, batch_size: int = 500, concurrency: int = 3):
        self.batch_size = batch_size
        self.concurrency = concurrency

    def affected_ids(self, ctx: MetricContext) -> list[int]:
        rows = ctx.analytics.execute(
            "SELECT DISTINCT post_id FROM post_event WHERE created_at > ?",
            [ctx.last_update],
        ).fetchall()
        return sorted({r[0] for r in rows} | set(ctx.queued_ids))

    async def update(self, ctx: MetricContext) -> None:
        with ctx.job.interrupting(ctx.analytics.interrupt, ctx.db.interrupt):
            ids = self.affected_ids(ctx)
            ctx.stats["affected"] = len(ids)
            if not ids:
                return

            batches = chunked(ids, self.batch_size)
            tasks = [partial(self._update_batch, ctx, batch, i, len(batches)) for i, batch in enumerate(batches, 1)]
            await limit_concurrency(tasks, self.concurrency, return_exceptions=False, job=ctx.job)

    async def _update_batch(self, ctx: MetricContext, ids: list[int], batch_num: int, total: int) -> None:
        ctx.job.check_if_canceled()
        logger.debug("Post metrics batch {}/{}", batch_num, total)
        now = ctx.run_started_at or utcnow()
        rows = count_post_events(ctx.analytics, ids, now)
        ctx.job.check_if_canceled()
        if not rows:
            return

        columns = ["post_id", "timeframe", *METRIC_COLUMNS.values()]
        metrics_df = pl.DataFrame(rows, schema=columns, orient="row").with_columns(
            pl.lit(now).cast(pl.Datetime("us")).alias("updated_at")
        )
        ctx.db.register("post_metrics_df", metrics_df)
        try:
            ctx.db.execute(
                f"""
                INSERT OR REPLACE INTO post_metric
                SELECT {", ".join(columns)}, updated_at FROM post_metrics_df
                WHERE post_id IN (SELECT id FROM post)
                """
            )
        finally:
            ctx.db.unregister("post_metrics_df")


class PostDayClearer:
    """Zeroes the Day timeframe when a new calendar day starts."""

    async def clear_day(self, ctx: MetricContext) -> None:
        columns = ", ".join(f"{column} = 0" for column in METRIC_COLUMNS.values())
        with ctx.job.interrupting(ctx.db.interrupt):
            ctx.db.execute(f"UPDATE post_metric SET {columns} WHERE timeframe = 'Day'")
        logger.info("Post metrics: day counters cleared")


async def fetch_post_event_metrics(analytics: duckdb.DuckDBPyConnection, ids: list[int]) -> dict[int, dict[str, float]]:
    """All-time event counts per post from the analytics store, keyed by event kind."""
    rows = analytics.execute(
        """
        SELECT post_id, kind, COUNT(*)
        FROM post_event
        WHERE list_contains(?, post_id)
        GROUP BY post_id, kind
        """,
        [ids],
    ).fetchall()

    result: dict[int, dict[str, float]] = {}
    for post_id, kind, count in rows:
        if kind in POST_EVENT_KINDS:
            result.setdefault(post_id, {})[kind] = count
    return result


def to_post_stats(post_id: int, metrics: dict[str, float] | None) -> dict[str, Any]:
    """Display-ready post stats; posts without metrics get zeros."""
    return {
        "post_id": post_id,
        "view_count": get_metric(metrics, "View") or 0,
        "comment_count": get_metric(metrics, "Comment") or 0,
        "collected_count": get_metric(metrics, "Collect") or 0,
        "reaction_count": sum_metrics(metrics, ["ThumbsUp", "ThumbsDown"]) or 0,
        **calculate_rating(metrics),
    }
