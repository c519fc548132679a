"""Live-session registry for in-app delivery.

A live session is one open WebSocket belonging to a user. ``publish`` fans an
event out to every session of the recipient and returns how many received
it; zero means the recipient is offline, which the in-app channel records as
a soft no-op rather than a failure.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from notification_service.core.settings import get_websocket_settings

if TYPE_CHECKING:
    from fastapi import WebSocket

    from notification_service.core.settings import WebSocketSettings

logger = logging.getLogger(__name__)


@dataclass
class LiveSession:
    session_id: str
    websocket: WebSocket
    user_id: str
    opened_at: float = field(default_factory=time.monotonic)
    last_seen: float = field(default_factory=time.monotonic)


class ConnectionManager:
    """Tracks live sessions per user and publishes events to them.

    Example:
        manager = await start_connection_manager()
        session_id = await manager.connect(websocket, user_id)
        await manager.publish(user_id, "notification", payload)
        await manager.disconnect(session_id)
    """

    def __init__(self, settings: WebSocketSettings | None = None) -> None:
        self._settings = settings or get_websocket_settings()
        self._sessions: dict[str, LiveSession] = {}
        self._by_user: dict[str, set[str]] = defaultdict(set)
        self._running = False
        self._heartbeat: asyncio.Task[None] | None = None

    @property
    def connection_count(self) -> int:
        return len(self._sessions)

    def is_online(self, user_id: str) -> bool:
        return bool(self._by_user.get(user_id))

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        if self._settings.heartbeat_interval > 0:
            self._heartbeat = asyncio.create_task(self._heartbeat_loop())
        logger.info(
            "Live-session manager started",
            extra={"heartbeat_interval": self._settings.heartbeat_interval},
        )

    async def stop(self) -> None:
        """Cancel the heartbeat and close every open session."""
        self._running = False
        if self._heartbeat is not None:
            self._heartbeat.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._heartbeat
            self._heartbeat = None

        sessions = list(self._sessions.values())
        self._sessions.clear()
        self._by_user.clear()
        for session in sessions:
            with contextlib.suppress(Exception):
                await session.websocket.close(code=1001, reason="Server shutdown")
        logger.info("Live-session manager stopped", extra={"sessions_closed": len(sessions)})

    async def connect(self, websocket: WebSocket, user_id: str) -> str:
        """Accept ``websocket`` as a live session of ``user_id``.

        Raises:
            ConnectionRefusedError: The instance or the user is at its session limit
        """
        if len(self._sessions) >= self._settings.max_connections:
            logger.warning("Live session refused", extra={"user_id": user_id, "reason": "instance_limit"})
            raise ConnectionRefusedError("Maximum connections reached")
        if len(self._by_user.get(user_id, ())) >= self._settings.max_connections_per_user:
            logger.warning("Live session refused", extra={"user_id": user_id, "reason": "user_limit"})
            raise ConnectionRefusedError("Maximum connections per user reached")

        await websocket.accept()
        session_id = str(uuid4())
        self._sessions[session_id] = LiveSession(session_id=session_id, websocket=websocket, user_id=user_id)
        self._by_user[user_id].add(session_id)
        logger.info(
            "Live session opened",
            extra={"session_id": session_id, "user_id": user_id, "sessions": len(self._sessions)},
        )
        return session_id

    async def disconnect(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return

        user_sessions = self._by_user.get(session.user_id)
        if user_sessions is not None:
            user_sessions.discard(session_id)
            if not user_sessions:
                del self._by_user[session.user_id]

        with contextlib.suppress(Exception):
            await session.websocket.close()
        logger.info(
            "Live session closed",
            extra={
                "session_id": session_id,
                "user_id": session.user_id,
                "duration_seconds": round(time.monotonic() - session.opened_at, 3),
            },
        )

    def touch(self, session_id: str) -> None:
        """Mark a session as alive; called on every client frame."""
        session = self._sessions.get(session_id)
        if session is not None:
            session.last_seen = time.monotonic()

    async def publish(self, recipient_id: str, event_name: str, payload: dict[str, Any]) -> int:
        """Send ``event_name`` to every session of the recipient.

        Returns:
            Number of sessions the event reached
        """
        message = {"event": event_name, "data": payload}
        reached = 0
        for session_id in list(self._by_user.get(recipient_id, ())):
            if await self._send(session_id, message):
                reached += 1
        return reached

    async def _send(self, session_id: str, message: dict[str, Any]) -> bool:
        session = self._sessions.get(session_id)
        if session is None:
            return False
        try:
            async with asyncio.timeout(self._settings.send_timeout):
                await session.websocket.send_json(message)
        except Exception as exc:
            # A session that cannot take a frame is gone
            logger.warning(
                "Live session send failed",
                extra={"session_id": session_id, "user_id": session.user_id, "error": str(exc)},
            )
            await self.disconnect(session_id)
            return False
        return True

    async def _heartbeat_loop(self) -> None:
        """Ping sessions every interval; close those silent for two intervals."""
        interval = self._settings.heartbeat_interval
        while self._running:
            await asyncio.sleep(interval)
            cutoff = time.monotonic() - interval * 2
            for session_id, session in list(self._sessions.items()):
                if session.last_seen < cutoff:
                    logger.info("Live session timed out", extra={"session_id": session_id})
                    await self.disconnect(session_id)
                else:
                    await self._send(session_id, {"type": "ping"})


_manager: ConnectionManager | None = None


def get_connection_manager() -> ConnectionManager:
    """Return the process-wide manager.

    Raises:
        RuntimeError: start_connection_manager() has not run
    """
    if _manager is None:
        raise RuntimeError("Connection manager not initialized. Call start_connection_manager() first.")
    return _manager


async def start_connection_manager(settings: WebSocketSettings | None = None) -> ConnectionManager:
    global _manager
    _manager = ConnectionManager(settings)
    await _manager.start()
    return _manager


async def stop_connection_manager() -> None:
    global _manager
    if _manager is not None:
        await _manager.stop()
        _manager = None
