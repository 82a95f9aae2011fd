"""Scheduler service - triggers a check pass on a fixed cadence.

The orchestrator never schedules itself. This in-process job is one trigger;
an external cron calling GET /api/check-servers is another. Overlapping
triggers are harmless because targets checked within their interval are skipped.
"""
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config import settings
from .orchestrator import CheckOrchestrator

logger = logging.getLogger(__name__)


class SchedulerService:
    """Runs CheckOrchestrator.run_pass every `tick_seconds`."""

    def __init__(self, orchestrator: CheckOrchestrator, tick_seconds: Optional[int] = None):
        self.orchestrator = orchestrator
        self.tick_seconds = tick_seconds or settings.check_tick_seconds
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        """Start the scheduler."""
        if self._running:
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self._run_pass,
            trigger=IntervalTrigger(seconds=self.tick_seconds),
            id="check_pass",
            replace_existing=True,
            max_instances=1,
            misfire_grace_time=self.tick_seconds,
        )
        self.scheduler.start()
        self._running = True
        logger.info(f"Scheduler started (tick={self.tick_seconds}s)")

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler and self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    async def _run_pass(self):
        try:
            await self.orchestrator.run_pass()
        except Exception as e:
            logger.error(f"Check pass failed: {type(e).__name__}: {e}")
