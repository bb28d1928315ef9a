"""Common models - base classes and shared tables."""

from app.models.common.base import BaseEntity
from app.models.common.entities import PendingUpdate, QueueSnapshot, UpdateAction, Watermark
from app.models.common.queue import METRIC_UPDATE_QUEUE_DDL, SEARCH_INDEX_UPDATE_QUEUE_DDL
from app.models.common.watermark import WATERMARK_DDL

__all__ = [
    "BaseEntity",
    "PendingUpdate",
    "QueueSnapshot",
    "UpdateAction",
    "Watermark",
    "WATERMARK_DDL",
    "METRIC_UPDATE_QUEUE_DDL",
    "SEARCH_INDEX_UPDATE_QUEUE_DDL",
]
