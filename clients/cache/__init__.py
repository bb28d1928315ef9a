"""Fast key-value store client."""

from clients.cache.client import CacheClient

__all__ = [
    "CacheClient",
]
