"""Search indexers - how documents for one index are pulled, shaped and pushed."""

from dataclasses import dataclass
from datetime import datetime
from functools import partial
from typing import Any, Protocol

import duckdb
from loguru import logger

from app.services.common.concurrency import limit_concurrency
from app.services.common.job import JobContext
from clients.search import SearchClient
from settings import SEARCH_BATCH_SIZE


@dataclass
class SearchIndexContext:
    """What an indexer hook gets: the target index and the run's state."""

    index_name: str
    db: duckdb.DuckDBPyConnection
    last_updated_at: datetime
    job: JobContext
    partial: bool = False


class SearchIndexer(Protocol):
    async def setup(self, index_name: str) -> None: ...

    async def update(self, ctx: SearchIndexContext) -> None: ...

    async def populate(self, ctx: SearchIndexContext) -> None: ...

    async def update_index(self, ctx: SearchIndexContext, update_ids: list[int], delete_ids: list[int]) -> None: ...

    async def get_data(self, ctx: SearchIndexContext, ids: list[int]) -> list[dict[str, Any]]: ...


class DocumentIndexer:
    """Base indexer over a table with integer ids.

    Full population splits the id space into ranges of ``batch_size`` and runs
    pull -> transform -> push per range with at most ``concurrency`` ranges in
    flight. Incremental updates pull the given ids; ids that no longer come
    back from the source are deleted from the index, unless the index is
    partial and the documents belong to another indexer.

    Subclasses implement ``max_id``, ``pull_range``, ``pull_ids`` and
    ``transform``.
    """

    primary_key = "id"
    settings: dict[str, Any] = {}

    def __init__(
        self,
        client: SearchClient,
        batch_size: int = SEARCH_BATCH_SIZE,
        concurrency: int = 3,
    ):
        self.client = client
        self.batch_size = batch_size
        self.concurrency = concurrency

    # Source side

    def max_id(self, ctx: SearchIndexContext) -> int:
        raise NotImplementedError

    def pull_range(self, ctx: SearchIndexContext, start: int, end: int) -> list[dict[str, Any]]:
        raise NotImplementedError

    def pull_ids(self, ctx: SearchIndexContext, ids: list[int]) -> list[dict[str, Any]]:
        raise NotImplementedError

    async def transform(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return rows

    def prepare_batches(self, ctx: SearchIndexContext) -> list[tuple[int, int]]:
        """Inclusive id ranges covering everything up to ``max_id``."""
        top = self.max_id(ctx)
        return [(start, min(start + self.batch_size - 1, top)) for start in range(1, top + 1, self.batch_size)]

    # Hooks

    async def setup(self, index_name: str) -> None:
        await self.client.get_or_create_index(index_name, self.primary_key)
        if self.settings:
            await self.client.update_settings(index_name, self.settings)
        logger.debug("Search {}: index set up", index_name)

    async def update(self, ctx: SearchIndexContext) -> None:
        """Incremental hook run before the queue is drained. Nothing by default."""

    async def populate(self, ctx: SearchIndexContext) -> None:
        batches = self.prepare_batches(ctx)
        logger.info("Search {}: populating {} batches", ctx.index_name, len(batches))
        tasks = [partial(self._populate_batch, ctx, start, end) for start, end in batches]
        await limit_concurrency(tasks, self.concurrency, return_exceptions=False, job=ctx.job)

    async def _populate_batch(self, ctx: SearchIndexContext, start: int, end: int) -> int:
        ctx.job.check_if_canceled()
        rows = self.pull_range(ctx, start, end)
        if not rows:
            return 0
        documents = await self.transform(rows)
        await self.client.add_documents(ctx.index_name, documents, primary_key=self.primary_key)
        logger.debug("Search {}: ids {}-{} pushed ({} docs)", ctx.index_name, start, end, len(documents))
        return len(documents)

    async def update_index(self, ctx: SearchIndexContext, update_ids: list[int], delete_ids: list[int]) -> None:
        documents = await self.get_data(ctx, update_ids) if update_ids else []
        found = {doc[self.primary_key] for doc in documents}
        gone = [] if ctx.partial else [i for i in update_ids if i not in found]

        await self.client.delete_documents(ctx.index_name, list(dict.fromkeys([*delete_ids, *gone])))
        await self.client.add_documents(ctx.index_name, documents, primary_key=self.primary_key)

    async def get_data(self, ctx: SearchIndexContext, ids: list[int]) -> list[dict[str, Any]]:
        rows = self.pull_ids(ctx, ids)
        return await self.transform(rows) if rows else []
