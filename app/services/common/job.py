"""Job context - cancellation token threaded through long-running passes."""

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from loguru import logger

from app.errors import JobCanceledError


class JobContext:
    """Cancellation token for one scheduled run.

    Long passes call ``check_if_canceled()`` once per chunk. Work that can be
    aborted from outside (a running DuckDB query) registers its abort hook
    with ``on_cancel`` or, for the span of one block, ``interrupting``.
    """

    def __init__(self, name: str = "job"):
        self.name = name
        self._canceled = False
        self._callbacks: list[Callable[[], None]] = []

    @property
    def canceled(self) -> bool:
        return self._canceled

    def cancel(self) -> None:
        """Flag the job as canceled and fire registered callbacks."""
        if self._canceled:
            return
        self._canceled = True
        logger.warning("Job {} canceled", self.name)
        for callback in list(self._callbacks):
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> None:
        self._callbacks.append(callback)

    @contextmanager
    def interrupting(self, *callbacks: Callable[[], None]) -> Iterator[None]:
        """Fire ``callbacks`` if the job is canceled while the block runs."""
        self._callbacks.extend(callbacks)
        try:
            yield
        finally:
            for callback in callbacks:
                self._callbacks.remove(callback)

    def check_if_canceled(self) -> None:
        """Raise JobCanceledError if the job was canceled."""
        if self._canceled:
            raise JobCanceledError(f"Job {self.name} canceled")
