"""Fixed-interval scheduler for the enforcement jobs.

Each job gets its own asyncio task and keeps its own cadence on the event
loop's monotonic clock. Job bodies run in a worker thread, so a slow metrics
run never delays auto-rejection. A job that raises is logged and simply runs
again at its next slot.
"""

import asyncio
import math
from dataclasses import dataclass, field
from typing import Callable

import structlog

logger = structlog.get_logger(__name__)


def next_due(previous_due: float, now: float, interval: float) -> float:
    """Next slot on the ``previous_due + k * interval`` grid strictly after ``now``.

    Slots missed while a run overran are skipped rather than run back to back.
    """
    due = previous_due + interval
    if due <= now:
        missed = math.floor((now - previous_due) / interval)
        due = previous_due + (missed + 1) * interval
    return due


@dataclass
class PeriodicJob:
    name: str
    interval_seconds: float
    func: Callable[[], object]
    run_on_start: bool = False
    runs: int = field(default=0, init=False)
    failures: int = field(default=0, init=False)

    def run_once(self):
        """Run the job body, logging and absorbing any exception."""
        self.runs += 1
        try:
            result = self.func()
        except Exception:
            self.failures += 1
            logger.exception("Scheduled job failed", job=self.name)
            return None
        logger.info("Scheduled job finished", job=self.name, result=result)
        return result


class Scheduler:
    def __init__(self, jobs: list[PeriodicJob]):
        self.jobs = list(jobs)
        self._stopping = asyncio.Event()

    def stop(self) -> None:
        self._stopping.set()

    async def _sleep_until(self, deadline: float) -> bool:
        """Wait until ``deadline`` on the loop clock. Returns False if stopped first."""
        loop = asyncio.get_running_loop()
        delay = max(0.0, deadline - loop.time())
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return True
        return False

    async def _run_job(self, job: PeriodicJob) -> None:
        loop = asyncio.get_running_loop()
        due = loop.time() if job.run_on_start else loop.time() + job.interval_seconds

        while not self._stopping.is_set():
            if not await self._sleep_until(due):
                break
            await asyncio.to_thread(job.run_once)
            due = next_due(due, loop.time(), job.interval_seconds)

    async def run(self) -> None:
        logger.info(
            "Scheduler starting",
            jobs={job.name: job.interval_seconds for job in self.jobs},
        )
        await asyncio.gather(*(self._run_job(job) for job in self.jobs))
        logger.info("Scheduler stopped")
