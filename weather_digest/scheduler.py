"""
Scheduler for the periodic pipelines.

Each job runs on its own fixed-interval timer; jobs are not coordinated
with each other and may overlap. A job never overlaps with itself.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class JobSpec:
    """A registered periodic job."""

    job_id: str
    name: str
    func: Callable[[], None]
    interval_seconds: int


class PeriodicScheduler:
    """Runs registered jobs at fixed intervals in background threads."""

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        """
        Args:
            clock: Time source for first-run times and tick timestamps
            scheduler: APScheduler instance (default: a UTC BackgroundScheduler)
        """
        self.clock = clock
        self.scheduler = scheduler or BackgroundScheduler(timezone=timezone.utc)
        self._jobs: Dict[str, JobSpec] = {}
        self._last_ticks: Dict[str, datetime] = {}
        self._is_running = False

    def add_job(self, job_id: str, func: Callable[[], None], interval_seconds: int, name: str = None) -> None:
        """Register a job; it is scheduled when the scheduler starts."""
        if interval_seconds <= 0:
            raise ValueError(f"Interval must be positive, got {interval_seconds}")
        self._jobs[job_id] = JobSpec(job_id, name or job_id, func, interval_seconds)
        if self._is_running:
            self._schedule(self._jobs[job_id])

    def _schedule(self, spec: JobSpec) -> None:
        first_run = self.clock() + timedelta(seconds=spec.interval_seconds)
        self.scheduler.add_job(
            self._run,
            args=(spec.job_id,),
            trigger=IntervalTrigger(seconds=spec.interval_seconds, start_date=first_run),
            id=spec.job_id,
            name=spec.name,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )

    def _run(self, job_id: str) -> None:
        spec = self._jobs[job_id]
        self._last_ticks[job_id] = self.clock()
        logger.info(f"Tick: {spec.name}")
        spec.func()

    def run_now(self, job_id: str) -> None:
        """Run a job immediately on the calling thread."""
        if job_id not in self._jobs:
            raise KeyError(f"Unknown job {job_id!r}")
        self._run(job_id)

    def start(self) -> None:
        """Start the scheduler."""
        if self._is_running:
            logger.warning("Scheduler already running")
            return

        for spec in self._jobs.values():
            self._schedule(spec)

        self.scheduler.start()
        self._is_running = True

        logger.info(
            "Scheduler started: "
            + ", ".join(f"{s.name} every {s.interval_seconds}s" for s in self._jobs.values())
        )

    def stop(self, wait: bool = True) -> None:
        """Stop the scheduler."""
        if not self._is_running:
            return
        self.scheduler.shutdown(wait=wait)
        self._is_running = False
        logger.info("Scheduler stopped")

    def status(self) -> dict:
        """Get scheduler status information."""
        jobs = {}
        for job_id, spec in self._jobs.items():
            job = self.scheduler.get_job(job_id) if self._is_running else None
            last_tick = self._last_ticks.get(job_id)
            jobs[job_id] = {
                "name": spec.name,
                "interval_seconds": spec.interval_seconds,
                "next_run": job.next_run_time.isoformat() if job and job.next_run_time else None,
                "last_tick": last_tick.isoformat() if last_tick else None,
            }
        return {"is_running": self._is_running, "jobs": jobs}

    @property
    def is_running(self) -> bool:
        return self._is_running
