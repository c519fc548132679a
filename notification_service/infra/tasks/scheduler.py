"""APScheduler jobs for the notification sweeps.

Two interval jobs run in the application process:
- the scheduled-delivery sweep (notifications whose ``scheduled_for`` passed)
- the expiry sweep (hard-deletes notifications past ``expires_at``)

Each job opens its own session; the service never sees a request session.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore[import-untyped]
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore[import-untyped]

from notification_service.infra.database import get_async_session

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from notification_service.core.settings import NotificationSettings
    from notification_service.features.notifications.service import NotificationService

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager["AsyncSession"]]

scheduler = AsyncIOScheduler(
    timezone="UTC",
    job_defaults={
        "coalesce": True,  # Combine multiple pending executions into one
        "max_instances": 1,  # Only one instance of each job at a time
        "misfire_grace_time": 60,
    },
)


async def run_pending_deliveries(
    service: NotificationService,
    session_scope: SessionScope = get_async_session,
) -> dict[str, Any]:
    """Deliver notifications whose schedule has come due."""
    try:
        async with session_scope() as session:
            reports = await service.process_pending_deliveries(session)
    except Exception:
        logger.exception("Scheduled-delivery sweep failed")
        raise
    failed = sum(not report.success for report in reports)
    return {"status": "success", "processed": len(reports), "failed": failed}


async def run_expiry_cleanup(
    service: NotificationService,
    session_scope: SessionScope = get_async_session,
) -> dict[str, Any]:
    """Delete notifications past their expiry."""
    try:
        async with session_scope() as session:
            deleted = await service.cleanup_expired(session)
    except Exception:
        logger.exception("Expiry sweep failed")
        raise
    return {"status": "success", "deleted_count": deleted}


def setup_scheduled_jobs(
    service: NotificationService,
    settings: NotificationSettings,
    target: AsyncIOScheduler | None = None,
) -> None:
    """Register the sweep jobs."""
    target = target or scheduler

    target.add_job(
        func=run_pending_deliveries,
        trigger=IntervalTrigger(seconds=settings.pending_sweep_interval_seconds),
        args=[service],
        id="notifications_pending_deliveries",
        name="Deliver scheduled notifications",
        replace_existing=True,
    )
    target.add_job(
        func=run_expiry_cleanup,
        trigger=IntervalTrigger(seconds=settings.expiry_sweep_interval_seconds),
        args=[service],
        id="notifications_expiry_cleanup",
        name="Delete expired notifications",
        replace_existing=True,
    )
    logger.info("Notification sweep jobs registered", extra={"jobs": len(target.get_jobs())})


async def start_scheduler() -> None:
    if not scheduler.running:
        scheduler.start()
        logger.info("APScheduler started", extra={"jobs": len(scheduler.get_jobs())})
    else:
        logger.warning("APScheduler is already running")


async def stop_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("APScheduler stopped")


def get_job_status() -> list[dict[str, Any]]:
    """Status of all scheduled jobs."""
    return [
        {
            "id": job.id,
            "name": job.name,
            "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
            "trigger": str(job.trigger),
        }
        for job in scheduler.get_jobs()
    ]
