"""Unit tests for the notification sweep jobs."""
from __future__ import annotations

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from notification_service.core.settings import NotificationSettings
from notification_service.features.notifications.schemas import PendingDeliveryReport
from notification_service.infra.tasks.scheduler import (
    run_expiry_cleanup,
    run_pending_deliveries,
    setup_scheduled_jobs,
)


@pytest.fixture
def session() -> MagicMock:
    return MagicMock(name="session")


@pytest.fixture
def session_scope(session):
    @asynccontextmanager
    async def scope():
        yield session

    return scope


@pytest.mark.unit
class TestSweepJobs:
    @pytest.mark.asyncio
    async def test_pending_deliveries(self, session, session_scope):
        service = AsyncMock()
        service.process_pending_deliveries.return_value = [
            PendingDeliveryReport(uuid4(), success=True),
            PendingDeliveryReport(uuid4(), success=False, error="db gone"),
        ]

        result = await run_pending_deliveries(service, session_scope)

        assert result == {"status": "success", "processed": 2, "failed": 1}
        service.process_pending_deliveries.assert_awaited_once_with(session)

    @pytest.mark.asyncio
    async def test_expiry_cleanup(self, session, session_scope):
        service = AsyncMock()
        service.cleanup_expired.return_value = 4

        result = await run_expiry_cleanup(service, session_scope)

        assert result == {"status": "success", "deleted_count": 4}
        service.cleanup_expired.assert_awaited_once_with(session)

    @pytest.mark.asyncio
    async def test_sweep_failure_propagates(self, session_scope):
        service = AsyncMock()
        service.cleanup_expired.side_effect = RuntimeError("database unavailable")

        with pytest.raises(RuntimeError, match="database unavailable"):
            await run_expiry_cleanup(service, session_scope)


@pytest.mark.unit
class TestJobRegistration:
    def test_registers_both_sweeps(self):
        target = AsyncIOScheduler(timezone="UTC")
        settings = NotificationSettings(pending_sweep_interval_seconds=15, expiry_sweep_interval_seconds=600)

        setup_scheduled_jobs(MagicMock(), settings, target)

        jobs = {job.id: job for job in target.get_jobs()}
        assert set(jobs) == {"notifications_pending_deliveries", "notifications_expiry_cleanup"}
        assert jobs["notifications_pending_deliveries"].trigger.interval.total_seconds() == 15
        assert jobs["notifications_expiry_cleanup"].trigger.interval.total_seconds() == 600
