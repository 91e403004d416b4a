"""Tests for the fixed-interval maintenance scheduler."""

import asyncio

import pytest
from ordering.enforcement.scheduler import PeriodicJob, Scheduler, next_due


class TestNextDue:
    def test_next_slot_on_schedule(self):
        assert next_due(100.0, 105.0, 10.0) == 110.0

    def test_missed_slots_are_skipped(self):
        assert next_due(100.0, 135.0, 10.0) == 140.0

    def test_exact_boundary_moves_forward(self):
        assert next_due(100.0, 110.0, 10.0) == 120.0


class TestPeriodicJob:
    def test_run_once_returns_result(self):
        job = PeriodicJob("metrics", 60, lambda: 3)

        assert job.run_once() == 3
        assert job.runs == 1
        assert job.failures == 0

    def test_failure_is_logged_and_counted(self):
        def boom():
            raise RuntimeError("database unavailable")

        job = PeriodicJob("auto-reject", 60, boom)

        assert job.run_once() is None
        assert job.failures == 1


class TestScheduler:
    def _run_for(self, jobs, seconds):
        async def main():
            scheduler = Scheduler(jobs)
            task = asyncio.create_task(scheduler.run())
            await asyncio.sleep(seconds)
            scheduler.stop()
            await asyncio.wait_for(task, timeout=2)

        asyncio.run(main())

    def test_jobs_run_repeatedly_on_their_interval(self):
        calls = []
        job = PeriodicJob("metrics", 0.02, lambda: calls.append(1), run_on_start=True)

        self._run_for([job], 0.25)

        assert job.runs >= 2
        assert len(calls) == job.runs

    def test_failing_job_keeps_its_schedule(self):
        def boom():
            raise RuntimeError("boom")

        failing = PeriodicJob("cleanup", 0.02, boom, run_on_start=True)
        healthy = PeriodicJob("auto-reject", 0.02, lambda: 0, run_on_start=True)

        self._run_for([failing, healthy], 0.25)

        assert failing.runs >= 2
        assert failing.failures == failing.runs
        assert healthy.runs >= 2
        assert healthy.failures == 0

    def test_stop_before_first_slot(self):
        job = PeriodicJob("cleanup", 60, lambda: 0)

        self._run_for([job], 0.01)

        assert job.runs == 0

    def test_services_expose_all_four_jobs(self, services):
        names = [job.name for job in services.periodic_jobs()]
        assert names == ["auto-reject", "payment-timeout", "metrics", "cleanup"]
        intervals = {job.name: job.interval_seconds for job in services.periodic_jobs()}
        assert intervals["auto-reject"] == pytest.approx(60)
        assert intervals["cleanup"] == pytest.approx(21600)
