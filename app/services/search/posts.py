"""Posts search index."""

from typing import Any

from loguru import logger

from app.services.common.concurrency import chunked
from app.services.metrics.cache import EntityMetricsCache
from app.services.search.indexer import DocumentIndexer, SearchIndexContext
from clients.search import SearchClient
from settings import SEARCH_BATCH_SIZE

POSTS_INDEX = "posts"

_COLUMNS = ["id", "user_id", "title", "content", "created_at", "updated_at"]


class PostsIndexer(DocumentIndexer):
    """Published posts, enriched with cached metric bundles when a cache is given."""

    settings = {
        "searchableAttributes": ["title", "content"],
        "filterableAttributes": ["user_id"],
        "sortableAttributes": ["created_at", "reaction_count", "comment_count", "rating"],
    }

    def __init__(
        self,
        client: SearchClient,
        metrics_cache: EntityMetricsCache | None = None,
        batch_size: int = SEARCH_BATCH_SIZE,
        concurrency: int = 3,
    ):
        super().__init__(client, batch_size=batch_size, concurrency=concurrency)
        self.metrics_cache = metrics_cache

    def max_id(self, ctx: SearchIndexContext) -> int:
        return ctx.db.execute("SELECT COALESCE(MAX(id), 0) FROM post").fetchone()[0]

    def _rows(self, cursor) -> list[dict[str, Any]]:
        return [dict(zip(_COLUMNS, row)) for row in cursor.fetchall()]

    def pull_range(self, ctx: SearchIndexContext, start: int, end: int) -> list[dict[str, Any]]:
        return self._rows(
            ctx.db.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM post WHERE published AND id BETWEEN ? AND ? ORDER BY id",
                [start, end],
            )
        )

    def pull_ids(self, ctx: SearchIndexContext, ids: list[int]) -> list[dict[str, Any]]:
        return self._rows(
            ctx.db.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM post WHERE published AND list_contains(?, id) ORDER BY id",
                [ids],
            )
        )

    async def transform(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        stats = {}
        if self.metrics_cache is not None:
            stats = await self.metrics_cache.fetch([row["id"] for row in rows])

        documents = []
        for row in rows:
            doc = {
                **row,
                "created_at": row["created_at"].isoformat(),
                "updated_at": row["updated_at"].isoformat(),
            }
            bundle = stats.get(row["id"])
            if bundle:
                doc.update({k: v for k, v in bundle.items() if k != "post_id"})
            documents.append(doc)
        return documents

    async def update(self, ctx: SearchIndexContext) -> None:
        """Push posts edited since the last pass."""
        rows = ctx.db.execute(
            "SELECT id FROM post WHERE updated_at > ? ORDER BY id",
            [ctx.last_updated_at],
        ).fetchall()
        ids = [r[0] for r in rows]
        if not ids:
            return

        logger.debug("Search {}: {} posts edited since {}", ctx.index_name, len(ids), ctx.last_updated_at)
        for batch in chunked(ids, self.batch_size):
            ctx.job.check_if_canceled()
            await self.update_index(ctx, batch, [])
