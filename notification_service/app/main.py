"""FastAPI application factory."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fastapi import FastAPI, Response, WebSocket, WebSocketDisconnect
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from notification_service import __version__
from notification_service.app.exception_handlers import configure_exception_handlers
from notification_service.app.lifespan import lifespan

if TYPE_CHECKING:
    from notification_service.features.notifications.ports import (
        EmailTransport,
        IdentityProvider,
        PushTransport,
        SmsTransport,
    )

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Collaborators:
    """External systems the engine is wired to at startup."""

    identity_provider: IdentityProvider
    push_transport: PushTransport | None = None
    email_transport: EmailTransport | None = None
    sms_transport: SmsTransport | None = None


async def notifications_socket(websocket: WebSocket, user_id: str) -> None:
    """Attach a live session for ``user_id`` until the client disconnects."""
    manager = websocket.app.state.connection_manager
    try:
        connection_id = await manager.connect(websocket, user_id)
    except ConnectionRefusedError:
        await websocket.close(code=1013, reason="Too many connections")
        return

    try:
        async for _ in websocket.iter_text():
            manager.touch(connection_id)
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(connection_id)


async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def create_app(
    identity_provider: IdentityProvider,
    *,
    push_transport: PushTransport | None = None,
    email_transport: EmailTransport | None = None,
    sms_transport: SmsTransport | None = None,
) -> FastAPI:
    """Create the FastAPI application hosting the notification engine.

    Example:
        app = create_app(identity_provider=UserDirectory(), push_transport=FcmTransport())
    """
    app = FastAPI(title="Notification Service", version=__version__, lifespan=lifespan)
    app.state.collaborators = Collaborators(
        identity_provider=identity_provider,
        push_transport=push_transport,
        email_transport=email_transport,
        sms_transport=sms_transport,
    )

    configure_exception_handlers(app)
    app.add_api_websocket_route("/ws/notifications/{user_id}", notifications_socket)
    app.add_api_route("/metrics", metrics, methods=["GET"], include_in_schema=False)
    return app
