"""Tests for the periodic scheduler and rate limiter."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from weather_digest.scheduler import PeriodicScheduler
from weather_digest.utils.rate_limiter import RateLimiter

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


class TestPeriodicScheduler:
    """Tests for PeriodicScheduler."""

    def test_run_now_forces_tick(self):
        """Test ticks can be driven without waiting on the timer."""
        clock = FakeClock()
        job = Mock()
        scheduler = PeriodicScheduler(clock=clock)
        scheduler.add_job("collect", job, 600)

        scheduler.run_now("collect")
        clock.advance(600)
        scheduler.run_now("collect")

        assert job.call_count == 2
        assert scheduler.status()["jobs"]["collect"]["last_tick"] == (NOW + timedelta(seconds=600)).isoformat()

    def test_jobs_are_independent(self):
        """Test forcing one job never runs the other."""
        collect, dispatch = Mock(), Mock()
        scheduler = PeriodicScheduler(clock=FakeClock())
        scheduler.add_job("collect", collect, 600)
        scheduler.add_job("dispatch", dispatch, 600)

        scheduler.run_now("dispatch")

        collect.assert_not_called()
        dispatch.assert_called_once()

    def test_start_schedules_first_run_after_interval(self):
        """Test jobs are registered with their interval from the injected clock."""
        backend = Mock()
        scheduler = PeriodicScheduler(clock=FakeClock(), scheduler=backend)
        scheduler.add_job("collect", Mock(), 600)
        scheduler.add_job("dispatch", Mock(), 300)

        scheduler.start()

        assert backend.add_job.call_count == 2
        kwargs = backend.add_job.call_args_list[0].kwargs
        assert kwargs["id"] == "collect"
        assert kwargs["max_instances"] == 1
        assert kwargs["trigger"].interval == timedelta(seconds=600)
        assert kwargs["trigger"].start_date == NOW + timedelta(seconds=600)
        backend.start.assert_called_once()
        assert scheduler.is_running

    def test_start_and_stop_are_idempotent(self):
        """Test repeated start/stop calls are harmless."""
        backend = Mock()
        scheduler = PeriodicScheduler(clock=FakeClock(), scheduler=backend)

        scheduler.start()
        scheduler.start()
        scheduler.stop()
        scheduler.stop()

        backend.start.assert_called_once()
        backend.shutdown.assert_called_once_with(wait=True)
        assert not scheduler.is_running

    def test_unknown_job(self):
        """Test forcing an unknown job raises KeyError."""
        with pytest.raises(KeyError):
            PeriodicScheduler().run_now("missing")

    def test_invalid_interval(self):
        """Test non-positive intervals are rejected."""
        with pytest.raises(ValueError):
            PeriodicScheduler().add_job("collect", Mock(), 0)


class TestRateLimiter:
    """Tests for RateLimiter."""

    def test_acquire_within_window(self):
        """Test requests beyond the limit are refused until the window passes."""
        now = [0.0]
        limiter = RateLimiter(max_requests=2, time_window=60, clock=lambda: now[0])

        assert limiter.acquire() is True
        assert limiter.acquire() is True
        assert limiter.acquire() is False

        now[0] = 60.0
        assert limiter.acquire() is True

    def test_wait_if_needed_sleeps(self):
        """Test the limiter waits out the window instead of failing."""
        now = [0.0]
        slept = []

        def sleep(seconds):
            slept.append(seconds)
            now[0] += seconds

        limiter = RateLimiter(max_requests=1, time_window=60, clock=lambda: now[0], sleep=sleep)
        limiter.wait_if_needed()
        limiter.wait_if_needed()

        assert slept == [60.0]
