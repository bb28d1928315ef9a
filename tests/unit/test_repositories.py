"""Tests for watermark and queue repositories."""

from datetime import datetime, timedelta

from app.clock import EPOCH
from app.models.common import PendingUpdate, UpdateAction
from app.repositories.common import (
    MetricUpdateQueueRepository,
    SearchIndexUpdateQueueRepository,
    WatermarkRepository,
)

T0 = datetime(2026, 5, 10, 12, 0)


class TestWatermark:
    def test_default_is_epoch(self, db):
        assert WatermarkRepository(db).get("metric:post") == EPOCH

    def test_set_and_get(self, db):
        repo = WatermarkRepository(db)
        assert repo.set("metric:post", T0) == T0
        assert repo.get("metric:post") == T0

    def test_monotonic(self, db):
        repo = WatermarkRepository(db)
        repo.set("metric:post", T0)
        assert repo.set("metric:post", T0 - timedelta(hours=1)) == T0
        assert repo.get("metric:post") == T0

    def test_advances(self, db):
        repo = WatermarkRepository(db)
        repo.set("metric:post", T0)
        repo.set("metric:post", T0 + timedelta(minutes=1))
        assert repo.get("metric:post") == T0 + timedelta(minutes=1)

    def test_force_moves_back(self, db):
        repo = WatermarkRepository(db)
        repo.set("metric:post", T0)
        repo.set("metric:post", T0 - timedelta(days=1), force=True)
        assert repo.get("metric:post") == T0 - timedelta(days=1)

    def test_keys_independent(self, db):
        repo = WatermarkRepository(db)
        repo.set("a", T0)
        assert repo.get("b") == EPOCH
        assert [w.to_dict() for w in repo.all()] == [{"job_key": "a", "last_run_at": T0}]

    def test_delete(self, db):
        repo = WatermarkRepository(db)
        repo.set("a", T0)
        repo.delete("a")
        assert repo.get("a") == EPOCH

    def test_job_date_setter(self, db):
        repo = WatermarkRepository(db)
        last, set_job_date = repo.get_job_date("a")
        assert last == EPOCH
        set_job_date(T0)
        assert repo.get("a") == T0


class TestMetricUpdateQueue:
    def test_enqueue_dedupes(self, db):
        repo = MetricUpdateQueueRepository(db)
        assert repo.enqueue("Post", [3, 1, 3], T0) == 2
        repo.enqueue("Post", [1], T0 + timedelta(seconds=5))
        assert repo.get_ids("Post") == [1, 3]

    def test_types_separate(self, db):
        repo = MetricUpdateQueueRepository(db)
        repo.enqueue("Post", [1], T0)
        repo.enqueue("User", [2], T0)
        assert repo.get_ids("User") == [2]

    def test_remove_before_keeps_newer(self, db):
        repo = MetricUpdateQueueRepository(db)
        repo.enqueue("Post", [1, 2], T0)
        repo.enqueue("Post", [3], T0 + timedelta(minutes=5))
        repo.remove_before("Post", T0 + timedelta(minutes=1))
        assert repo.get_ids("Post") == [3]

    def test_get_ids_before(self, db):
        repo = MetricUpdateQueueRepository(db)
        repo.enqueue("Post", [1], T0)
        repo.enqueue("Post", [2], T0 + timedelta(minutes=5))
        assert repo.get_ids("Post", before=T0) == [1]


class TestSearchIndexUpdateQueue:
    def test_last_write_wins(self, db):
        repo = SearchIndexUpdateQueueRepository(db)
        repo.enqueue("posts", [PendingUpdate(id=1)], T0)
        repo.enqueue("posts", [PendingUpdate(id=1, action=UpdateAction.DELETE)], T0 + timedelta(seconds=1))
        snapshot = repo.get_queue("posts")
        assert [(i.id, i.action) for i in snapshot.items] == [(1, UpdateAction.DELETE)]

    def test_filter_by_action(self, db):
        repo = SearchIndexUpdateQueueRepository(db)
        repo.enqueue("posts", [PendingUpdate(id=1), PendingUpdate(id=2, action=UpdateAction.DELETE)], T0)
        assert repo.get_queue("posts", UpdateAction.DELETE).ids == [2]
        assert repo.get_queue("posts", UpdateAction.UPDATE).ids == [1]

    def test_commit_removes_snapshot(self, db):
        repo = SearchIndexUpdateQueueRepository(db)
        repo.enqueue("posts", [PendingUpdate(id=1), PendingUpdate(id=2)], T0)
        repo.commit(repo.get_queue("posts"))
        assert repo.count("posts") == 0

    def test_commit_keeps_requeued(self, db):
        repo = SearchIndexUpdateQueueRepository(db)
        repo.enqueue("posts", [PendingUpdate(id=1), PendingUpdate(id=2)], T0)
        snapshot = repo.get_queue("posts")
        repo.enqueue("posts", [PendingUpdate(id=2)], T0 + timedelta(seconds=1))
        repo.commit(snapshot)
        assert repo.get_queue("posts").ids == [2]

    def test_empty_snapshot(self, db):
        repo = SearchIndexUpdateQueueRepository(db)
        snapshot = repo.get_queue("posts")
        assert snapshot.items == [] and snapshot.taken_at is None
        repo.commit(snapshot)

    def test_clear_before(self, db):
        repo = SearchIndexUpdateQueueRepository(db)
        repo.enqueue("posts", [PendingUpdate(id=1)], T0)
        repo.enqueue("posts", [PendingUpdate(id=2)], T0 + timedelta(minutes=1))
        repo.enqueue("users", [PendingUpdate(id=3)], T0)
        repo.clear("posts", before=T0)
        assert repo.get_queue("posts").ids == [2]
        assert repo.count("users") == 1
