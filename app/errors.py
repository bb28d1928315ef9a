"""Sync engine errors."""


class SyncError(Exception):
    """Base error for the sync engine."""

    def __init__(self, message: str = "Sync error"):
        self.message = message
        super().__init__(self.message)


class JobCanceledError(SyncError):
    """Job was canceled by its runner."""

    def __init__(self, message: str = "Job canceled"):
        super().__init__(message)


class RankTableError(SyncError):
    """Rank table rebuild refused or failed."""


class SearchTaskError(SyncError):
    """Search engine task finished with a failure status."""

    def __init__(self, message: str = "Search task failed", task_uid: int | None = None):
        self.task_uid = task_uid
        super().__init__(message)
