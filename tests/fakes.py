"""In-memory doubles for Redis and the Meilisearch REST API."""

import json
import re
from fnmatch import fnmatch

import httpx


class FakePipeline:
    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._ops = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *_):
        self._ops = []

    def set(self, key, value, ex=None, nx=False):
        self._ops.append((key, value, ex, nx))
        return self

    async def execute(self):
        results = [await self._redis.set(key, value, ex=ex, nx=nx) for key, value, ex, nx in self._ops]
        self._ops = []
        return results


class FakeReleaseScript:
    """Stands in for the lock release script: delete KEYS[i] while it holds ARGV[i]."""

    def __init__(self, redis: "FakeRedis"):
        self._redis = redis

    async def __call__(self, keys=None, args=None, client=None):
        released = 0
        for key, token in zip(keys or [], args or []):
            if self._redis.data.get(key) == token:
                del self._redis.data[key]
                released += 1
        return released


class FakeRedis:
    """Subset of redis.asyncio.Redis used by the cache client (decode_responses=True)."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key):
        return self.data.get(key)

    async def mget(self, keys):
        return [self.data.get(k) for k in keys]

    async def set(self, key, value, ex=None, nx=False):
        if nx and key in self.data:
            return None
        self.data[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def scan_iter(self, match=None, count=None):
        for key in list(self.data):
            if match is None or fnmatch(key, match):
                yield key

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    def register_script(self, script):
        return FakeReleaseScript(self)

    async def ping(self):
        return True

    async def aclose(self):
        pass


class FakeMeilisearch:
    """Enough of the Meilisearch API for index lifecycle, documents and search.

    Tasks are applied synchronously when enqueued; GET /tasks reports the outcome.
    """

    def __init__(self):
        self.indexes: dict[str, dict] = {}
        self.tasks: dict[int, dict] = {}
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def documents(self, uid: str) -> list[dict]:
        return sorted(self.indexes[uid]["documents"].values(), key=lambda d: d[self.indexes[uid]["primaryKey"]])

    def ids(self, uid: str) -> list[int]:
        return [d[self.indexes[uid]["primaryKey"]] for d in self.documents(uid)]

    def requests_to(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def _create(self, uid: str, primary_key: str | None) -> None:
        self.indexes[uid] = {"primaryKey": primary_key or "id", "documents": {}, "settings": {}}

    def _task(self, kind: str, uid: str | None, apply) -> httpx.Response:
        task_uid = len(self.tasks)
        error = apply()
        self.tasks[task_uid] = {
            "uid": task_uid,
            "indexUid": uid,
            "status": "failed" if error else "succeeded",
            "type": kind,
            "error": {"message": error, "code": "invalid_request"} if error else None,
        }
        return httpx.Response(202, json={"taskUid": task_uid, "indexUid": uid, "status": "enqueued", "type": kind})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        method = request.method
        body = json.loads(request.content) if request.content else None

        if m := re.fullmatch(r"/tasks/(\d+)", path):
            task = self.tasks.get(int(m.group(1)))
            return httpx.Response(200, json=task) if task else httpx.Response(404, json={"code": "task_not_found"})

        if path == "/indexes" and method == "POST":
            uid = body["uid"]

            def create():
                if uid in self.indexes:
                    return f"Index `{uid}` already exists."
                self._create(uid, body.get("primaryKey"))

            return self._task("indexCreation", uid, create)

        if path == "/swap-indexes" and method == "POST":

            def swap():
                for pair in body:
                    a, b = pair["indexes"]
                    if a not in self.indexes or b not in self.indexes:
                        return f"Indexes {a}, {b} must both exist."
                    self.indexes[a], self.indexes[b] = self.indexes[b], self.indexes[a]

            return self._task("indexSwap", None, swap)

        m = re.fullmatch(r"/indexes/([^/]+)(/.*)?", path)
        if not m:
            return httpx.Response(404, json={"code": "not_found"})
        uid, rest = m.group(1), m.group(2) or ""
        index = self.indexes.get(uid)

        if rest == "" and method == "GET":
            if index is None:
                return httpx.Response(404, json={"code": "index_not_found"})
            return httpx.Response(200, json={"uid": uid, "primaryKey": index["primaryKey"]})

        if rest == "" and method == "DELETE":

            def delete():
                if self.indexes.pop(uid, None) is None:
                    return f"Index `{uid}` not found."

            return self._task("indexDeletion", uid, delete)

        if rest == "/settings" and method == "PATCH":

            def settings():
                if index is None:
                    return f"Index `{uid}` not found."
                index["settings"].update(body)

            return self._task("settingsUpdate", uid, settings)

        if rest == "/documents" and method == "POST":

            def add():
                if uid not in self.indexes:
                    self._create(uid, request.url.params.get("primaryKey"))
                target = self.indexes[uid]
                for doc in body:
                    target["documents"][doc[target["primaryKey"]]] = doc

            return self._task("documentAdditionOrUpdate", uid, add)

        if rest == "/documents/delete-batch" and method == "POST":

            def delete_docs():
                if index is None:
                    return f"Index `{uid}` not found."
                for doc_id in body:
                    index["documents"].pop(doc_id, None)

            return self._task("documentDeletion", uid, delete_docs)

        if index is None:
            return httpx.Response(404, json={"code": "index_not_found"})

        if rest == "/documents" and method == "GET":
            limit = int(request.url.params.get("limit", 20))
            offset = int(request.url.params.get("offset", 0))
            return httpx.Response(200, json={"results": self.documents(uid)[offset : offset + limit]})

        if rest == "/search" and method == "POST":
            query = (body.get("q") or "").lower()
            hits = [d for d in self.documents(uid) if not query or query in json.dumps(d).lower()]
            return httpx.Response(200, json={"hits": hits[: body.get("limit", 20)], "query": query})

        return httpx.Response(404, json={"code": "not_found"})


class FakeClock:
    """Settable clock for processors."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now += delta


def add_post(db, post_id: int, updated_at, published: bool = True, title: str | None = None):
    db.execute(
        "INSERT INTO post VALUES (?, ?, ?, ?, ?, ?, ?)",
        [post_id, 100 + post_id, title or f"Post {post_id}", "body", published, updated_at, updated_at],
    )


def add_event(db, post_id: int, kind: str, created_at):
    db.execute("INSERT INTO post_event VALUES (?, ?, ?, ?)", [post_id, 1, kind, created_at])
