"""Common repositories - watermarks and queue tables."""

from app.repositories.common.queue import MetricUpdateQueueRepository, SearchIndexUpdateQueueRepository
from app.repositories.common.watermark import WatermarkRepository

__all__ = [
    "MetricUpdateQueueRepository",
    "SearchIndexUpdateQueueRepository",
    "WatermarkRepository",
]
