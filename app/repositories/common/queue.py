"""Queue repositories - durable tables polled by the periodic processors."""

from collections.abc import Iterable
from datetime import datetime

import polars as pl
from loguru import logger

from app.models.common import PendingUpdate, QueueSnapshot, UpdateAction
from app.repositories.base import BaseRepository


class MetricUpdateQueueRepository(BaseRepository):
    """Entities flagged for recomputation ahead of the next scheduled pass."""

    def enqueue(self, entity_type: str, ids: Iterable[int], queued_at: datetime) -> int:
        """Upsert ids for an entity type. Returns number of distinct ids queued."""
        unique = sorted(set(ids))
        if not unique:
            return 0

        queue_df = pl.DataFrame(
            {
                "type": [entity_type] * len(unique),
                "id": unique,
                "queued_at": [queued_at] * len(unique),
            },
            schema={"type": pl.Utf8, "id": pl.Int32, "queued_at": pl.Datetime("us")},
        )
        self._db.register("metric_queue_df", queue_df)
        try:
            self.execute("INSERT OR REPLACE INTO metric_update_queue SELECT type, id, queued_at FROM metric_queue_df")
        finally:
            self._db.unregister("metric_queue_df")
        logger.debug("Metric queue {}: +{} ids", entity_type, len(unique))
        return len(unique)

    def get_ids(self, entity_type: str, before: datetime | None = None) -> list[int]:
        """Get queued ids, optionally only those queued at or before `before`."""
        if before is None:
            rows = self.fetchall(
                "SELECT id FROM metric_update_queue WHERE type = ? ORDER BY id",
                [entity_type],
            )
        else:
            rows = self.fetchall(
                "SELECT id FROM metric_update_queue WHERE type = ? AND queued_at <= ? ORDER BY id",
                [entity_type, before],
            )
        return [r[0] for r in rows]

    def remove_before(self, entity_type: str, before: datetime) -> None:
        """Drop entries queued strictly before `before` - covered by a finished run."""
        self.execute(
            "DELETE FROM metric_update_queue WHERE type = ? AND queued_at < ?",
            [entity_type, before],
        )
        logger.debug("Metric queue {}: cleared entries before {}", entity_type, before)


class SearchIndexUpdateQueueRepository(BaseRepository):
    """Pending search index updates. One row per (index, id): last write wins."""

    def enqueue(self, index_name: str, items: Iterable[PendingUpdate], queued_at: datetime) -> int:
        """Append pending updates for an index. Returns number of distinct ids queued."""
        latest: dict[int, UpdateAction] = {}
        for item in items:
            latest[item.id] = item.action
        if not latest:
            return 0

        queue_df = pl.DataFrame(
            {
                "index_name": [index_name] * len(latest),
                "id": list(latest.keys()),
                "action": [action.value for action in latest.values()],
                "queued_at": [queued_at] * len(latest),
            },
            schema={
                "index_name": pl.Utf8,
                "id": pl.Int32,
                "action": pl.Utf8,
                "queued_at": pl.Datetime("us"),
            },
        )
        self._db.register("search_queue_df", queue_df)
        try:
            self.execute(
                """
                INSERT OR REPLACE INTO search_index_update_queue
                SELECT index_name, id, action, queued_at FROM search_queue_df
                """
            )
        finally:
            self._db.unregister("search_queue_df")
        logger.debug("Search queue {}: +{} items", index_name, len(latest))
        return len(latest)

    def get_queue(self, index_name: str, action: UpdateAction | None = None) -> QueueSnapshot:
        """Read pending items for an index without removing them."""
        query = "SELECT id, action, queued_at FROM search_index_update_queue WHERE index_name = ?"
        params: list = [index_name]
        if action is not None:
            query += " AND action = ?"
            params.append(action.value)
        rows = self.fetchall(query + " ORDER BY queued_at, id", params)

        items = [PendingUpdate(id=r[0], action=UpdateAction(r[1])) for r in rows]
        taken_at = max((r[2] for r in rows), default=None)
        return QueueSnapshot(name=index_name, items=items, taken_at=taken_at)

    def commit(self, snapshot: QueueSnapshot) -> None:
        """Remove the snapshot's items unless they were re-queued since it was taken."""
        if not snapshot.items:
            return
        self.execute(
            """
            DELETE FROM search_index_update_queue
            WHERE index_name = ? AND queued_at <= ? AND list_contains(?, id)
            """,
            [snapshot.name, snapshot.taken_at, snapshot.ids],
        )
        logger.debug("Search queue {}: committed {} items", snapshot.name, len(snapshot.items))

    def clear(self, index_name: str, before: datetime | None = None) -> None:
        """Drop pending items for an index, only those queued at or before `before` if given."""
        if before is None:
            self.execute("DELETE FROM search_index_update_queue WHERE index_name = ?", [index_name])
        else:
            self.execute(
                "DELETE FROM search_index_update_queue WHERE index_name = ? AND queued_at <= ?",
                [index_name, before],
            )
        logger.info("Search queue {}: cleared", index_name)

    def count(self, index_name: str) -> int:
        row = self.fetchone(
            "SELECT COUNT(*) FROM search_index_update_queue WHERE index_name = ?",
            [index_name],
        )
        return row[0]
