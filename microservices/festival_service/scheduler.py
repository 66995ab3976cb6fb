"""
Festival Scheduler

APScheduler jobs for the hourly activation sweep and the daily reset of
rolling campaigns.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from core.config import LifecycleConfig

from .festival_service import FestivalService

logger = logging.getLogger(__name__)

ACTIVATION_JOB_ID = "festival_activation_sweep"
RESET_JOB_ID = "festival_infinite_reset"


class FestivalScheduler:
    """Owns the AsyncIOScheduler driving the campaign lifecycle"""

    def __init__(
        self,
        service: FestivalService,
        lifecycle: Optional[LifecycleConfig] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self.service = service
        self.lifecycle = lifecycle or LifecycleConfig()
        self.scheduler = scheduler or AsyncIOScheduler()

    def register_jobs(self) -> None:
        # Hourly sweep for campaigns that became active
        self.scheduler.add_job(
            self.service.run_activation_sweep,
            'interval',
            minutes=self.lifecycle.activation_sweep_minutes,
            id=ACTIVATION_JOB_ID,
            replace_existing=True,
        )

        # Daily reset of rolling campaigns, then notify what was reset
        self.scheduler.add_job(
            self.run_reset_and_notify,
            'cron',
            hour=self.lifecycle.reset_cron_hour,
            minute=self.lifecycle.reset_cron_minute,
            id=RESET_JOB_ID,
            replace_existing=True,
        )

    async def run_reset_and_notify(self) -> None:
        reset = await self.service.run_infinite_reset()
        if reset:
            await self.service.run_activation_sweep()

    def start(self) -> None:
        self.register_jobs()
        self.scheduler.start()
        logger.info(
            f"✅ Festival scheduler started (sweep every {self.lifecycle.activation_sweep_minutes} min, "
            f"reset daily at {self.lifecycle.reset_cron_hour:02d}:{self.lifecycle.reset_cron_minute:02d})"
        )

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("✅ Festival scheduler stopped")

    @property
    def running(self) -> bool:
        return self.scheduler.running


__all__ = ["FestivalScheduler", "ACTIVATION_JOB_ID", "RESET_JOB_ID"]
