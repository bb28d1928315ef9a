"""Fast key-value store client - Redis holding JSON-packed metric bundles."""

import json
import uuid
from collections.abc import AsyncIterator, Mapping

from loguru import logger
from redis import asyncio as redis_async
from redis.exceptions import RedisError

from settings import REDIS_URL

# Deletes each KEYS[i] only while it still holds ARGV[i].
RELEASE_LOCKS = """
local released = 0
for i, key in ipairs(KEYS) do
    if redis.call("GET", key) == ARGV[i] then
        redis.call("DEL", key)
        released = released + 1
    end
end
return released
"""


class CacheClient:
    """Thin async wrapper over Redis for packed values and short-lived locks.

    Every key is namespaced under `prefix`. Values are JSON documents.
    """

    def __init__(self, redis: redis_async.Redis, prefix: str = "sync"):
        self._redis = redis
        self._prefix = prefix
        self._release = redis.register_script(RELEASE_LOCKS)

    @classmethod
    def from_url(cls, url: str = REDIS_URL, prefix: str = "sync") -> "CacheClient":
        return cls(redis_async.from_url(url, decode_responses=True), prefix=prefix)

    async def aclose(self) -> None:
        await self._redis.aclose()

    def key(self, name: str) -> str:
        return f"{self._prefix}:{name}"

    async def get_many(self, names: list[str]) -> list[dict | None]:
        """Bulk read (one MGET round trip). Missing keys come back as None."""
        if not names:
            return []
        raw = await self._redis.mget([self.key(n) for n in names])
        return [json.loads(v) if v is not None else None for v in raw]

    async def missing(self, names: list[str]) -> list[str]:
        """Names with no stored value, in input order."""
        values = await self.get_many(names)
        return [n for n, v in zip(names, values) if v is None]

    async def set_many(self, values: Mapping[str, dict], ttl: int | None = None) -> None:
        if not values:
            return
        async with self._redis.pipeline(transaction=False) as pipe:
            for name, value in values.items():
                pipe.set(self.key(name), json.dumps(value), ex=ttl)
            await pipe.execute()

    async def delete_many(self, names: list[str]) -> int:
        if not names:
            return 0
        return await self._redis.delete(*[self.key(n) for n in names])

    async def acquire_locks(self, names: list[str], ttl: int) -> list[str | None]:
        """SET NX EX per lock name. The owner token where this caller now holds the lock, else None."""
        if not names:
            return []
        tokens = [uuid.uuid4().hex for _ in names]
        async with self._redis.pipeline(transaction=False) as pipe:
            for name, token in zip(names, tokens):
                pipe.set(self.key(f"lock:{name}"), token, nx=True, ex=ttl)
            results = await pipe.execute()
        return [token if ok else None for token, ok in zip(tokens, results)]

    async def release_locks(self, locks: Mapping[str, str]) -> int:
        """Release locks still held under the given tokens. Expired and re-taken locks are left alone."""
        if not locks:
            return 0
        return await self._release(keys=[self.key(f"lock:{n}") for n in locks], args=list(locks.values()))

    async def scan(self, pattern: str, count: int = 1000) -> AsyncIterator[str]:
        """Iterate stored names matching `pattern` (SCAN, not KEYS)."""
        offset = len(self._prefix) + 1
        async for key in self._redis.scan_iter(match=self.key(pattern), count=count):
            yield key[offset:]

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError as e:
            logger.warning("Cache ping failed: {}", e)
            return False
