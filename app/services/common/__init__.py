"""Shared service primitives - concurrency runner and job context."""

from app.services.common.concurrency import chunked, limit_concurrency
from app.services.common.job import JobContext

__all__ = [
    "chunked",
    "limit_concurrency",
    "JobContext",
]
