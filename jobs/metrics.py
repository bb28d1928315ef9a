"""Metric jobs - aggregation passes and rank refreshes."""

from loguru import logger

from app.services.common import JobContext
from app.services.metrics import MetricProcessor


async def run_metric_updates(processors: list[MetricProcessor], force: bool = False) -> int:
    """Run every due metric update. Returns how many passes ran."""
    ran = 0
    for processor in processors:
        if await processor.update(JobContext(processor.job_key), force=force):
            ran += 1
    logger.info("Metric updates: {}/{} ran", ran, len(processors))
    return ran


async def run_rank_refreshes(processors: list[MetricProcessor], force: bool = False) -> int:
    """Rebuild every due rank table. Returns how many were rebuilt."""
    ran = 0
    for processor in processors:
        if await processor.refresh_rank(JobContext(processor.rank_job_key), force=force):
            ran += 1
    logger.info("Rank refreshes: {}/{} ran", ran, len(processors))
    return ran
