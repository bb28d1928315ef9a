"""Models package - DDL and entities for all domains."""

from app.models.common import (
    METRIC_UPDATE_QUEUE_DDL,
    SEARCH_INDEX_UPDATE_QUEUE_DDL,
    WATERMARK_DDL,
    BaseEntity,
    PendingUpdate,
    QueueSnapshot,
    UpdateAction,
    Watermark,
)
from app.models.post import (
    POST_DDL,
    POST_EVENT_DDL,
    POST_METRIC_DDL,
    POST_RANK_DDL,
    POST_RANK_LIVE_DDL,
)

ALL_DDL = [
    # Common
    WATERMARK_DDL,
    METRIC_UPDATE_QUEUE_DDL,
    SEARCH_INDEX_UPDATE_QUEUE_DDL,
    # Post
    POST_DDL,
    POST_METRIC_DDL,
    POST_RANK_LIVE_DDL,
    POST_RANK_DDL,
]

ANALYTICS_DDL = [
    POST_EVENT_DDL,
]

__all__ = [
    # Common
    "BaseEntity",
    "PendingUpdate",
    "QueueSnapshot",
    "UpdateAction",
    "Watermark",
    "WATERMARK_DDL",
    "METRIC_UPDATE_QUEUE_DDL",
    "SEARCH_INDEX_UPDATE_QUEUE_DDL",
    # Post
    "POST_DDL",
    "POST_EVENT_DDL",
    "POST_METRIC_DDL",
    "POST_RANK_LIVE_DDL",
    "POST_RANK_DDL",
    # All DDL
    "ALL_DDL",
    "ANALYTICS_DDL",
]
