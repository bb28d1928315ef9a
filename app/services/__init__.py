"""Services package - service class exports."""

from app.services.common import JobContext, chunked, limit_concurrency
from app.services.metrics import EntityMetricsCache, MetricProcessor, RankConfig
from app.services.search import PostsIndexer, SearchIndexUpdateProcessor

__all__ = [
    "JobContext",
    "chunked",
    "limit_concurrency",
    "EntityMetricsCache",
    "MetricProcessor",
    "RankConfig",
    "PostsIndexer",
    "SearchIndexUpdateProcessor",
]
