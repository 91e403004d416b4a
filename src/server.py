"""Maintenance job runner for Dispatchline.

Runs the periodic enforcement jobs on their own fixed cadences:
- auto-reject:      PLACED orders the restaurant never answered
- payment-timeout:  PENDING orders whose payment never arrived
- metrics:          daily order statistics
- cleanup:          retention of notification records and old statistics

Usage:
    python src/server.py                        # Run every job on its interval
    python src/server.py --job auto-reject      # Run only one job
    python src/server.py --job metrics --once   # Run one job immediately and exit
"""

import argparse
import asyncio
import signal

from bootstrap import bootstrap
from ordering.enforcement.scheduler import Scheduler
from shared.logging import add_context, configure_logging, get_logger

JOB_NAMES = ["auto-reject", "payment-timeout", "metrics", "cleanup"]

logger = get_logger(__name__)


async def run(job_names):
    services = bootstrap()
    jobs = [job for job in services.periodic_jobs() if job.name in job_names]
    scheduler = Scheduler(jobs)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, scheduler.stop)
        except NotImplementedError:
            # Signal handlers are unavailable on some platforms (Windows)
            pass

    logger.info("Maintenance runner starting", jobs=[job.name for job in jobs])
    await scheduler.run()


def run_once(job_names):
    services = bootstrap()
    for job in services.periodic_jobs():
        if job.name in job_names:
            logger.info("Running job once", job=job.name)
            job.run_once()


def main():
    parser = argparse.ArgumentParser(description="Dispatchline maintenance runner")
    parser.add_argument(
        "--job",
        choices=JOB_NAMES,
        help="Run a single job (default: run all)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run the selected job(s) immediately and exit",
    )
    args = parser.parse_args()

    configure_logging()
    add_context(runner="maintenance")
    job_names = [args.job] if args.job else JOB_NAMES

    if args.once:
        run_once(job_names)
    else:
        asyncio.run(run(job_names))


if __name__ == "__main__":
    main()
