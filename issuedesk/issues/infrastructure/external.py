"""
Issue Background Services
=========================

APScheduler wrapper that runs the periodic SLA sweep.
"""

from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from issuedesk.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)


class SLAScheduler:
    """
    Wrapper for APScheduler for background SLA sweeps.

    Manages the lifecycle of the scheduler and its single job.
    """

    JOB_ID = "sla_sweep"

    def __init__(self, interval_seconds: int = 60):
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    async def start(self, job_func: Callable[[], Awaitable[dict]]) -> None:
        """Start the scheduler with the given job function."""
        if self._running:
            logger.warning("SLA scheduler already running")
            return

        self._scheduler = AsyncIOScheduler()

        self._scheduler.add_job(
            self._wrap(job_func),
            "interval",
            seconds=self.interval_seconds,
            id=self.JOB_ID,
            name="SLA Sweep Job",
            misfire_grace_time=self.interval_seconds,
            max_instances=1,
            coalesce=True,
            replace_existing=True
        )

        self._scheduler.start()
        self._running = True

        logger.info(
            "SLA scheduler started",
            extra={"interval_seconds": self.interval_seconds}
        )

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)

        self._running = False
        logger.info("SLA scheduler stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running

    @staticmethod
    def _wrap(job_func: Callable[[], Awaitable[dict]]) -> Callable[[], Awaitable[None]]:
        async def run() -> None:
            try:
                with log_latency(logger, "sla_sweep"):
                    summary = await job_func()
            except Exception:
                # The next interval retries; the job must stay scheduled
                logger.exception("SLA sweep failed")
                return
            if summary:
                logger.info("SLA sweep summary", extra=summary)

        return run
