"""Application lifespan.

Startup order:
1. Logging
2. Database schema
3. Live-session manager
4. Notification engine (retry queue tick loop)
5. Sweep scheduler

Shutdown runs in reverse.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from notification_service.core.settings import (
    get_logging_settings,
    get_notification_settings,
    get_websocket_settings,
)
from notification_service.features.notifications import build_notification_engine
from notification_service.infra.database import close_database, get_session_factory, init_database
from notification_service.infra.logging import setup_logging
from notification_service.infra.realtime import start_connection_manager, stop_connection_manager
from notification_service.infra.tasks import setup_scheduled_jobs, start_scheduler, stop_scheduler

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the engine around the application's lifetime.

    The transports and identity provider are read from ``app.state.collaborators``
    (set by ``create_app``).
    """
    setup_logging(get_logging_settings())
    notification_settings = get_notification_settings()

    await init_database()
    manager = await start_connection_manager(get_websocket_settings())

    collaborators = app.state.collaborators
    engine = build_notification_engine(
        session_factory=get_session_factory(),
        publisher=manager,
        identity_provider=collaborators.identity_provider,
        push_transport=collaborators.push_transport,
        email_transport=collaborators.email_transport,
        sms_transport=collaborators.sms_transport,
        settings=notification_settings,
    )
    await engine.start()
    app.state.notification_engine = engine
    app.state.connection_manager = manager

    if notification_settings.scheduler_enabled:
        setup_scheduled_jobs(engine.service, notification_settings)
        await start_scheduler()

    logger.info("Notification service started")
    try:
        yield
    finally:
        if notification_settings.scheduler_enabled:
            await stop_scheduler()
        await engine.stop()
        await stop_connection_manager()
        await close_database()
        logger.info("Notification service stopped")
