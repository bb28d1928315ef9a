"""Repositories package - data access layer for our database."""

from app.repositories.base import BaseRepository
from app.repositories.common import (
    MetricUpdateQueueRepository,
    SearchIndexUpdateQueueRepository,
    WatermarkRepository,
)
from app.repositories.db import (
    close_db,
    get_analytics_db,
    get_db,
    init_analytics_tables,
    init_tables,
)

__all__ = [
    # DB
    "get_db",
    "get_analytics_db",
    "close_db",
    "init_tables",
    "init_analytics_tables",
    # Base
    "BaseRepository",
    # Common
    "WatermarkRepository",
    "MetricUpdateQueueRepository",
    "SearchIndexUpdateQueueRepository",
]
