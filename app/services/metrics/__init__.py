"""Metric services - processors, rank tables and the metrics cache."""

from app.services.metrics.cache import EntityMetricsCache
from app.services.metrics.helpers import calculate_rating, get_metric, sum_metrics
from app.services.metrics.post import (
    POST_RANK,
    PostDayClearer,
    PostMetricsAggregator,
    fetch_post_event_metrics,
    to_post_stats,
)
from app.services.metrics.processor import MetricContext, MetricProcessor
from app.services.metrics.rank import RankConfig, RankTableSwap

__all__ = [
    "EntityMetricsCache",
    "MetricContext",
    "MetricProcessor",
    "RankConfig",
    "RankTableSwap",
    "POST_RANK",
    "PostDayClearer",
    "PostMetricsAggregator",
    "fetch_post_event_metrics",
    "to_post_stats",
    "calculate_rating",
    "get_metric",
    "sum_metrics",
]
