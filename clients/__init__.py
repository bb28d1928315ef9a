"""External store clients package."""

from clients.base import BaseClient
from clients.cache import CacheClient
from clients.search import SearchClient

__all__ = [
    # Base
    "BaseClient",
    # Clients
    "CacheClient",
    "SearchClient",
]
