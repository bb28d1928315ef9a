"""Jobs package - scheduled sync of derived stores."""

from jobs.runner import JOBS, TICK, run_all, run_jobs

__all__ = [
    "JOBS",
    "TICK",
    "run_all",
    "run_jobs",
]
