"""Dependency Injection container - initialized at job startup."""

import duckdb

from app.repositories.common import (
    MetricUpdateQueueRepository,
    SearchIndexUpdateQueueRepository,
    WatermarkRepository,
)
from app.repositories.db import get_analytics_db, get_db
from app.services.metrics import (
    POST_RANK,
    EntityMetricsCache,
    MetricProcessor,
    PostDayClearer,
    PostMetricsAggregator,
    fetch_post_event_metrics,
    to_post_stats,
)
from app.services.search import POSTS_INDEX, PostsIndexer, SearchIndexUpdateProcessor
from clients.cache import CacheClient
from clients.search import SearchClient


class Container:
    """Application DI container - holds all singleton instances."""

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def init(
        self,
        db: duckdb.DuckDBPyConnection | None = None,
        analytics: duckdb.DuckDBPyConnection | None = None,
        cache: CacheClient | None = None,
        search: SearchClient | None = None,
    ) -> None:
        """Initialize all dependencies. Call once at startup."""
        if self._initialized:
            return

        self.db = db if db is not None else get_db()
        self.analytics = analytics if analytics is not None else get_analytics_db()
        self.cache = cache or CacheClient.from_url()
        self.search = search or SearchClient()
        self.search.open()

        # Repositories (singletons)
        self.watermarks = WatermarkRepository(self.db)
        self._metric_queue = MetricUpdateQueueRepository(self.db)
        self._search_queue = SearchIndexUpdateQueueRepository(self.db)

        # Services (with injected repos)
        self.post_metrics_cache = EntityMetricsCache(
            "post",
            self.cache,
            populate=lambda ids: fetch_post_event_metrics(self.analytics, ids),
            transform=to_post_stats,
        )

        self.post_metrics = MetricProcessor(
            "Post",
            PostMetricsAggregator(),
            db=self.db,
            analytics=self.analytics,
            watermarks=self.watermarks,
            queue=self._metric_queue,
            day_clearer=PostDayClearer(),
            rank=POST_RANK,
        )

        self.posts_search = SearchIndexUpdateProcessor(
            POSTS_INDEX,
            PostsIndexer(self.search, metrics_cache=self.post_metrics_cache),
            client=self.search,
            db=self.db,
            queue=self._search_queue,
            watermarks=self.watermarks,
        )

        self._initialized = True

    @property
    def metric_processors(self) -> list[MetricProcessor]:
        return [self.post_metrics]

    @property
    def search_processors(self) -> list[SearchIndexUpdateProcessor]:
        return [self.posts_search]

    async def aclose(self) -> None:
        """Close network clients and forget all instances."""
        if not self._initialized:
            return
        await self.search.aclose()
        await self.cache.aclose()
        self._initialized = False


# Global container instance
container = Container()
