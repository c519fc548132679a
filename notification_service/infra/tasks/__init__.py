"""Background jobs."""

from notification_service.infra.tasks.scheduler import (
    get_job_status,
    run_expiry_cleanup,
    run_pending_deliveries,
    scheduler,
    setup_scheduled_jobs,
    start_scheduler,
    stop_scheduler,
)

__all__ = [
    "get_job_status",
    "run_expiry_cleanup",
    "run_pending_deliveries",
    "scheduler",
    "setup_scheduled_jobs",
    "start_scheduler",
    "stop_scheduler",
]
