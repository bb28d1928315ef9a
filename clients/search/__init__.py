"""Search engine client."""

from clients.search.client import SearchClient
from clients.search.schemas import IndexSchema, TaskInfo, TaskSchema

__all__ = [
    "SearchClient",
    "IndexSchema",
    "TaskInfo",
    "TaskSchema",
]
