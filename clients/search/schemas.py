"""Search engine API schemas - task and index payloads."""

from pydantic import BaseModel, ConfigDict, Field


class TaskInfo(BaseModel):
    """Summary returned when an asynchronous task is enqueued."""

    model_config = ConfigDict(populate_by_name=True)

    task_uid: int = Field(alias="taskUid")
    index_uid: str | None = Field(alias="indexUid", default=None)
    status: str = "enqueued"
    type: str | None = None


class TaskSchema(BaseModel):
    """Task state as reported by GET /tasks/{uid}."""

    model_config = ConfigDict(populate_by_name=True)

    uid: int
    index_uid: str | None = Field(alias="indexUid", default=None)
    status: str
    type: str | None = None
    error: dict | None = None

    @property
    def finished(self) -> bool:
        return self.status in ("succeeded", "failed", "canceled")


class IndexSchema(BaseModel):
    """Index metadata."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str
    primary_key: str | None = Field(alias="primaryKey", default=None)
