#!/usr/bin/env python3
"""
Run derived-store sync jobs once (meant to be called by a scheduler).

Usage:
    python run_jobs.py                  # One tick: metrics, rank, search
    python run_jobs.py all              # Same as above
    python run_jobs.py metrics rank     # Specific jobs
    python run_jobs.py search --force   # Ignore update intervals
    python run_jobs.py reset [posts]    # Rebuild search indexes with a swap
    python run_jobs.py --debug          # Verbose console output
"""

import sys

from jobs import JOBS, TICK, run_all
from settings.logging import setup_logging


def main():
    args = sys.argv[1:]

    force = "--force" in args or "-f" in args
    level = "DEBUG" if "--debug" in args else "INFO"
    args = [a for a in args if a not in ("--force", "-f", "--debug")]

    logger = setup_logging(level=level, to_file=True)

    indexes = None
    if not args or args == ["all"]:
        jobs = TICK
    elif args[0] == "reset":
        jobs = ["reset"]
        indexes = args[1:] or None
    else:
        jobs = args
        unknown = [j for j in jobs if j not in JOBS]
        if unknown:
            print(__doc__)
            sys.exit(1)

    logger.info("Jobs: {}{}", ", ".join(jobs), " [FORCE]" if force else "")
    failed = run_all(jobs, force=force, indexes=indexes)
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
