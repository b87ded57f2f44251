"""APScheduler setup and job registration."""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import settings
from app.jobs.lr_revalidation import revalidate_finalized_rooms

scheduler = AsyncIOScheduler(timezone=settings.timezone)


def register_jobs() -> None:
    """Register all periodic jobs if not already present."""
    if scheduler.get_job("lr_revalidation") is None:
        interval = max(1, settings.revalidation_interval_minutes)
        scheduler.add_job(
            revalidate_finalized_rooms,
            CronTrigger(minute=f"*/{interval}", timezone=settings.timezone),
            id="lr_revalidation",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
