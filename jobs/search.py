"""Search jobs - incremental index sync and full rebuilds."""

from loguru import logger

from app.services.common import JobContext
from app.services.search import SearchIndexUpdateProcessor


async def run_search_updates(processors: list[SearchIndexUpdateProcessor], force: bool = False) -> int:
    """Run every due incremental index update. Returns how many ran."""
    ran = 0
    for processor in processors:
        if await processor.update(JobContext(processor.job_key), force=force):
            ran += 1
    logger.info("Search updates: {}/{} ran", ran, len(processors))
    return ran


async def run_search_resets(processors: list[SearchIndexUpdateProcessor], indexes: list[str] | None = None) -> int:
    """Rebuild indexes (all of them unless `indexes` is given)."""
    selected = [p for p in processors if indexes is None or p.index_name in indexes]
    for processor in selected:
        await processor.reset(JobContext(f"{processor.job_key}:reset"))
    logger.info("Search resets: {} rebuilt", len(selected))
    return len(selected)
