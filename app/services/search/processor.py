"""Search index update processor - incremental sync and zero-downtime rebuilds."""

from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

import duckdb
from loguru import logger

from app.clock import utcnow
from app.models.common import PendingUpdate, QueueSnapshot, UpdateAction
from app.repositories.common import SearchIndexUpdateQueueRepository, WatermarkRepository
from app.services.common.concurrency import chunked
from app.services.common.job import JobContext
from app.services.search.indexer import SearchIndexContext, SearchIndexer
from clients.search import SearchClient
from settings import SEARCH_BATCH_SIZE, SEARCH_UPDATE_INTERVAL

PendingItem = PendingUpdate | dict | int


def _as_pending(item: PendingItem) -> PendingUpdate:
    if isinstance(item, PendingUpdate):
        return item
    if isinstance(item, int):
        return PendingUpdate(id=item)
    return PendingUpdate.model_validate(item)


class SearchIndexUpdateProcessor:
    """Keeps one search index in sync with its source rows.

    ``update`` is the scheduled incremental path: the indexer's own update
    hook, then the pending queue drained in batches. ``reset`` rebuilds the
    whole index into ``{index}_new`` and swaps it in, so queries against the
    live name never see a half-filled index.

    Partial indexes only carry a subset of each document. They read the
    queue without committing it, never apply queued deletes, are rebuilt in
    place, and keep their watermark only when a ``job_name`` is given.
    """

    def __init__(
        self,
        index_name: str,
        indexer: SearchIndexer,
        *,
        client: SearchClient,
        db: duckdb.DuckDBPyConnection,
        queue: SearchIndexUpdateQueueRepository | None = None,
        watermarks: WatermarkRepository | None = None,
        job_name: str | None = None,
        partial: bool = False,
        primary_key: str = "id",
        update_interval: timedelta = timedelta(seconds=SEARCH_UPDATE_INTERVAL),
        batch_size: int = SEARCH_BATCH_SIZE,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.index_name = index_name
        self.indexer = indexer
        self.client = client
        self._db = db
        self._queue = queue or SearchIndexUpdateQueueRepository(db)
        self._watermarks = watermarks or WatermarkRepository(db)
        self.job_name = job_name
        self.partial = partial
        self.primary_key = primary_key
        self.update_interval = update_interval
        self.batch_size = batch_size
        self._clock = clock
        self._log = logger.bind(job=self.job_key)

    @property
    def job_key(self) -> str:
        return f"search-index:{(self.job_name or self.index_name).lower()}"

    @property
    def swap_name(self) -> str:
        return f"{self.index_name}_new"

    def _context(self, index_name: str, last_updated_at: datetime, job: JobContext) -> SearchIndexContext:
        return SearchIndexContext(
            index_name=index_name,
            db=self._db,
            last_updated_at=last_updated_at,
            job=job,
            partial=self.partial,
        )

    async def update(self, job: JobContext | None = None, force: bool = False) -> bool:
        """Run one incremental pass if due. Returns True when a pass ran."""
        job = job or JobContext(self.job_key)
        last_updated_at = self._watermarks.get(self.job_key)
        now = self._clock()
        if not force and now - last_updated_at < self.update_interval:
            self._log.debug("Not due yet (last run {})", last_updated_at)
            return False

        self._log.info("Updating {} since {}", self.index_name, last_updated_at)
        ctx = self._context(self.index_name, last_updated_at, job)
        await self.indexer.update(ctx)
        job.check_if_canceled()

        processed = await self.process_queues(deletes=not self.partial, job=job)
        job.check_if_canceled()

        if not self.partial or self.job_name:
            self._watermarks.set(self.job_key, now)
        self._log.info("Updated {} ({} queued items applied)", self.index_name, processed)
        return True

    async def process_queues(self, updates: bool = True, deletes: bool = True, job: JobContext | None = None) -> int:
        """Apply pending queue items of the chosen actions. Returns items applied."""
        if updates and deletes:
            snapshots = [self._queue.get_queue(self.index_name)]
        else:
            actions = [a for a, wanted in ((UpdateAction.UPDATE, updates), (UpdateAction.DELETE, deletes)) if wanted]
            snapshots = [self._queue.get_queue(self.index_name, action) for action in actions]

        items = [item for snapshot in snapshots for item in snapshot.items]
        if not items:
            return 0

        await self.update_sync(items, job=job)
        if not self.partial:
            self._commit(snapshots)
        return len(items)

    def _commit(self, snapshots: list[QueueSnapshot]) -> None:
        for snapshot in snapshots:
            self._queue.commit(snapshot)

    async def update_sync(self, items: Iterable[PendingItem], job: JobContext | None = None) -> int:
        """Apply items to the live index now, in batches. Returns batches sent."""
        pending = [_as_pending(item) for item in items]
        if not pending:
            return 0

        job = job or JobContext(self.job_key)
        ctx = self._context(self.index_name, self._watermarks.get(self.job_key), job)
        batches = chunked(pending, self.batch_size)
        self._log.debug("Sync {} items in {} batches", len(pending), len(batches))

        for batch in batches:
            job.check_if_canceled()
            update_ids = [item.id for item in batch if item.action == UpdateAction.UPDATE]
            # Partial documents are owned by another indexer.
            delete_ids = [] if self.partial else [item.id for item in batch if item.action == UpdateAction.DELETE]
            await self.indexer.update_index(ctx, update_ids, delete_ids)
        return len(batches)

    async def reset(self, job: JobContext | None = None) -> None:
        """Rebuild the whole index and swap it in."""
        job = job or JobContext(self.job_key)
        started_at = self._clock()
        await self.client.get_or_create_index(self.index_name, self.primary_key)

        if self.partial:
            self._log.info("Rebuilding partial index {} in place", self.index_name)
            await self.indexer.populate(self._context(self.index_name, started_at, job))
            return

        self._log.info("Rebuilding {} into {}", self.index_name, self.swap_name)
        await self.client.delete_index_if_exists(self.swap_name)
        await self.indexer.setup(self.swap_name)
        await self.indexer.populate(self._context(self.swap_name, started_at, job))
        job.check_if_canceled()

        await self.client.swap_indexes([(self.index_name, self.swap_name)])
        # After the swap the old documents live under the swap name.
        await self.client.delete_index_if_exists(self.swap_name)
        self._queue.clear(self.index_name, before=started_at)
        self._log.info("Rebuilt {}", self.index_name)

    async def queue_update(self, items: PendingItem | Iterable[PendingItem]) -> int:
        """Queue items for the next scheduled pass. Returns distinct ids queued."""
        if isinstance(items, (PendingUpdate, dict, int)):
            items = [items]
        return self._queue.enqueue(self.index_name, [_as_pending(i) for i in items], self._clock())

    async def get_data(self, ids: list[int]) -> list[dict]:
        """Documents as they would be pushed, without pushing them."""
        ctx = self._context(self.index_name, self._watermarks.get(self.job_key), JobContext(self.job_key))
        return await self.indexer.get_data(ctx, ids)
