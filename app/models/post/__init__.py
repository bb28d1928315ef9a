"""Post domain models - source rows, analytics events, metrics and ranks."""

from app.models.post.event import POST_EVENT_DDL, POST_EVENT_KINDS
from app.models.post.metric import (
    POST_METRIC_DDL,
    POST_RANK_DDL,
    POST_RANK_INDEXES,
    POST_RANK_LIVE_DDL,
    TIMEFRAMES,
)
from app.models.post.post import POST_DDL

__all__ = [
    "POST_DDL",
    "POST_EVENT_DDL",
    "POST_EVENT_KINDS",
    "POST_METRIC_DDL",
    "POST_RANK_LIVE_DDL",
    "POST_RANK_DDL",
    "POST_RANK_INDEXES",
    "TIMEFRAMES",
]
