"""Job orchestration - one scheduler tick over the selected jobs."""

import asyncio

from loguru import logger

from app.container import container
from jobs.metrics import run_metric_updates, run_rank_refreshes
from jobs.search import run_search_resets, run_search_updates

JOBS = ["metrics", "rank", "search", "reset"]
# "all" is one scheduler tick; rebuilds are only run when asked for.
TICK = ["metrics", "rank", "search"]


async def run_jobs(jobs: list[str], force: bool = False, indexes: list[str] | None = None) -> list[str]:
    """Run the named jobs in order. Returns the names of jobs that failed."""
    container.init()
    failed = []
    if not await container.cache.ping():
        logger.warning("Cache unreachable, metric bundles will be recomputed on read")
    try:
        for name in jobs:
            try:
                if name == "metrics":
                    await run_metric_updates(container.metric_processors, force)
                elif name == "rank":
                    await run_rank_refreshes(container.metric_processors, force)
                elif name == "search":
                    await run_search_updates(container.search_processors, force)
                elif name == "reset":
                    await run_search_resets(container.search_processors, indexes)
                else:
                    raise ValueError(f"Unknown job: {name}")
            except Exception as e:
                # Next tick retries from the same watermark.
                logger.error("Job {} failed: {}", name, e)
                failed.append(name)
    finally:
        await container.aclose()

    logger.info("Jobs complete ({} failed)", len(failed))
    return failed


def run_all(jobs: list[str], force: bool = False, indexes: list[str] | None = None) -> list[str]:
    """Main entry point."""
    return asyncio.run(run_jobs(jobs, force, indexes))
