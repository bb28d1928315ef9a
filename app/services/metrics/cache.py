"""Entity metrics cache - read-through cache of per-entity metric bundles."""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from functools import partial
from typing import Any

from loguru import logger

from app.services.common.concurrency import chunked, limit_concurrency
from clients.cache import CacheClient
from settings import CACHE_LOCK_TTL, CACHE_LOCK_WAIT

MetricMap = dict[str, float]
PopulateFn = Callable[[list[int]], Awaitable[dict[int, MetricMap]]]
TransformFn = Callable[[int, MetricMap | None], dict[str, Any]]
AdditionalFn = Callable[[list[int]], Awaitable[dict[int, dict[str, Any]]]]


class EntityMetricsCache:
    """Per-entity metric bundles kept in the fast store, filled from the analytics store.

    Entries have no TTL unless one is given; they are invalidated with
    ``bust`` or rewritten with ``refresh``. Concurrent misses on the same id
    are collapsed with a per-id lock so only one caller recomputes it; the
    others poll until the entry appears or ``lock_wait`` runs out, in which
    case the id is served through the transform's default path.

    An id the analytics store has never seen is stored as an empty bundle and
    handed to the transform as None, exactly like an absent entry.
    """

    def __init__(
        self,
        entity_type: str,
        cache: CacheClient,
        populate: PopulateFn,
        transform: TransformFn,
        additional: AdditionalFn | None = None,
        ttl: int | None = None,
        lock_ttl: int = CACHE_LOCK_TTL,
        lock_wait: float = CACHE_LOCK_WAIT,
        poll_interval: float = 0.05,
        batch_size: int = 500,
        concurrency: int = 5,
        scan: bool = True,
    ):
        self.entity_type = entity_type
        self._cache = cache
        self._populate_fn = populate
        self._transform = transform
        self._additional = additional
        self._ttl = ttl
        self._lock_ttl = lock_ttl
        self._lock_wait = lock_wait
        self._poll_interval = poll_interval
        self._batch_size = batch_size
        self._concurrency = concurrency
        self._scan = scan
        self._log = logger.bind(job=f"metrics-cache:{entity_type}")

    def _name(self, entity_id: int) -> str:
        return f"{self.entity_type}:{entity_id}"

    async def fetch(self, ids: int | Iterable[int]) -> dict[int, dict[str, Any]]:
        """Metric bundles for every requested id, populating misses first."""
        unique = _unique_ids(ids)
        if not unique:
            return {}

        await self._ensure_populated(unique)
        raw = await self._cache.get_many([self._name(i) for i in unique])
        extra = await self._additional(unique) if self._additional else {}

        results = {}
        for entity_id, metrics in zip(unique, raw):
            bundle = self._transform(entity_id, metrics or None)
            if entity_id in extra:
                bundle = {**bundle, **extra[entity_id]}
            results[entity_id] = bundle
        return results

    async def bust(self, ids: int | Iterable[int]) -> None:
        """Drop cached bundles; the next fetch repopulates them."""
        unique = _unique_ids(ids)
        if not unique:
            return
        await self._cache.delete_many([self._name(i) for i in unique])
        self._log.debug("Busted {} items", len(unique))

    async def refresh(self, ids: int | Iterable[int]) -> None:
        """Recompute bundles now, overwriting whatever is cached."""
        unique = _unique_ids(ids)
        if not unique:
            return
        await self._populate(unique)
        self._log.debug("Refreshed {} items", len(unique))

    async def flush(self) -> int:
        """Best-effort removal of every bundle of this entity type.

        Relies on key scanning; when the store is configured without it
        (``scan=False``) this is a logged no-op. Never needed for correctness.
        """
        if not self._scan:
            self._log.warning("Flush not supported without key scanning - skipped")
            return 0

        names = [name async for name in self._cache.scan(f"{self.entity_type}:*")]
        for batch in chunked(names, 1000):
            await self._cache.delete_many(batch)
        self._log.info("Flushed {} items", len(names))
        return len(names)

    async def _missing(self, ids: list[int]) -> list[int]:
        missing = set(await self._cache.missing([self._name(i) for i in ids]))
        return [i for i in ids if self._name(i) in missing]

    async def _ensure_populated(self, ids: list[int]) -> None:
        pending = await self._missing(ids)
        deadline = None
        loop = asyncio.get_running_loop()

        while pending:
            tokens = await self._cache.acquire_locks([self._name(i) for i in pending], self._lock_ttl)
            held = {i: token for i, token in zip(pending, tokens) if token}
            contended = [i for i in pending if i not in held]

            if held:
                try:
                    # Another caller may have filled these between our read and the lock.
                    todo = await self._missing(list(held))
                    if todo:
                        self._log.debug("Cache miss - {} items", len(todo))
                        await self._populate(todo)
                finally:
                    await self._cache.release_locks({self._name(i): token for i, token in held.items()})

            if not contended:
                return

            if deadline is None:
                deadline = loop.time() + self._lock_wait
            elif loop.time() >= deadline:
                self._log.warning("Gave up waiting on {} locked items, serving defaults", len(contended))
                return

            await asyncio.sleep(self._poll_interval)
            pending = await self._missing(contended)

    async def _populate(self, ids: list[int]) -> None:
        tasks = [partial(self._populate_batch, batch) for batch in chunked(ids, self._batch_size)]
        await limit_concurrency(tasks, self._concurrency, return_exceptions=False)

    async def _populate_batch(self, ids: list[int]) -> None:
        data = await self._populate_fn(ids)
        await self._cache.set_many(
            {self._name(i): data.get(i) or {} for i in ids},
            ttl=self._ttl,
        )


def _unique_ids(ids: int | Iterable[int]) -> list[int]:
    if isinstance(ids, int):
        return [ids]
    return list(dict.fromkeys(ids))
