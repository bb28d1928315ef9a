"""Shared entities - queue items and watermarks."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from app.models.common.base import BaseEntity


class UpdateAction(str, Enum):
    """What a pending update asks the read model to do with an entity."""

    UPDATE = "Update"
    DELETE = "Delete"


class PendingUpdate(BaseModel):
    """Entity change not yet absorbed by a search index."""

    id: int
    action: UpdateAction = UpdateAction.UPDATE


@dataclass
class Watermark(BaseEntity):
    """Start time of the last successful run of a named job."""

    job_key: str
    last_run_at: datetime


@dataclass
class QueueSnapshot(BaseEntity):
    """Items read from a queue table, removed only once committed."""

    name: str
    items: list[PendingUpdate]
    taken_at: datetime | None

    @property
    def ids(self) -> list[int]:
        return [item.id for item in self.items]
