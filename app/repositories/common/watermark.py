"""Watermark repository - last run timestamps shared across process instances."""

from collections.abc import Callable
from datetime import datetime

from loguru import logger

from app.clock import EPOCH, utcnow
from app.models.common import Watermark
from app.repositories.base import BaseRepository


class WatermarkRepository(BaseRepository):
    """Repository for per-job watermarks.

    Writes are monotonic by value: storing a timestamp older than the one
    already recorded is a no-op unless ``force`` is set. No locking is done
    here; concurrent instances rely on idempotent downstream work.
    """

    def get(self, job_key: str) -> datetime:
        """Get the watermark for a job, EPOCH when the job never ran."""
        row = self.fetchone(
            "SELECT last_run_at FROM job_watermark WHERE job_key = ?",
            [job_key],
        )
        return row[0] if row else EPOCH

    def set(self, job_key: str, value: datetime, force: bool = False) -> datetime:
        """Advance the watermark to `value`. Returns the stored watermark."""
        if force:
            self.execute(
                "INSERT OR REPLACE INTO job_watermark (job_key, last_run_at) VALUES (?, ?)",
                [job_key, value],
            )
            logger.debug("Watermark forced: {} = {}", job_key, value)
            return value

        self.execute(
            "INSERT OR IGNORE INTO job_watermark (job_key, last_run_at) VALUES (?, ?)",
            [job_key, value],
        )
        self.execute(
            "UPDATE job_watermark SET last_run_at = ? WHERE job_key = ? AND last_run_at < ?",
            [value, job_key, value],
        )

        stored = self.get(job_key)
        if stored > value:
            logger.debug("Watermark {} kept at {} (ignored older {})", job_key, stored, value)
        else:
            logger.debug("Watermark set: {} = {}", job_key, value)
        return stored

    def delete(self, job_key: str) -> None:
        """Forget a job's watermark so its next run covers everything."""
        self.execute("DELETE FROM job_watermark WHERE job_key = ?", [job_key])
        logger.info("Watermark deleted: {}", job_key)

    def all(self) -> list[Watermark]:
        rows = self.fetchall("SELECT job_key, last_run_at FROM job_watermark ORDER BY job_key")
        return [Watermark.from_row(r) for r in rows]

    def get_job_date(self, job_key: str) -> tuple[datetime, Callable[..., datetime]]:
        """Get the watermark plus a setter that defaults to the current time."""
        last_run_at = self.get(job_key)

        def set_job_date(value: datetime | None = None) -> datetime:
            return self.set(job_key, value or utcnow())

        return last_run_at, set_job_date
