"""Pytest configuration and shared fixtures.

Organization:
    - Database Fixtures: in-memory SQLite engine, session and session factory
    - Collaborator Fakes: identity provider, live-event publisher, push transport
    - Engine Fixtures: settings, clock and a fully wired notification engine

The engine fixtures wire the real delivery manager, repositories and retry
queue against SQLite; only the external systems are faked.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from notification_service.features.notifications.enums import PushPlatform
from notification_service.features.notifications.ports import (
    DeviceToken,
    PushMessage,
    PushSendResult,
    UserIdentity,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from notification_service.core.settings import NotificationSettings
    from notification_service.features.notifications.engine import NotificationEngine

# Ensure tests run without external infrastructure
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("NOTIFY_SCHEDULER_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

RECIPIENT_ID = "65f1a2b3c4d5e6f7a8b9c0d1"
SENDER_ID = "65f1a2b3c4d5e6f7a8b9c0d2"
FIXED_NOW = datetime(2026, 3, 14, 12, 0, tzinfo=UTC)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory SQLite engine with every table created.

    StaticPool keeps a single connection so sessions opened by the retry
    queue see the same database as the test session.
    """
    from notification_service.core.database import Base

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Session for one test; uncommitted work is rolled back afterwards."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()


# ============================================================================
# Collaborator Fakes
# ============================================================================


class FakeIdentityProvider:
    """In-memory user directory."""

    def __init__(self, users: list[UserIdentity] | None = None) -> None:
        self.users = {user.user_id: user for user in users or []}
        self.removed_tokens: list[tuple[str, str]] = []
        self.lookups = 0

    def add(self, user: UserIdentity) -> None:
        self.users[user.user_id] = user

    async def get_user(self, user_id: str) -> UserIdentity | None:
        self.lookups += 1
        return self.users.get(user_id)

    async def remove_device_token(self, user_id: str, token: str) -> None:
        self.removed_tokens.append((user_id, token))
        user = self.users.get(user_id)
        if user is None:
            return
        remaining = tuple(device for device in user.device_tokens if device.token != token)
        self.users[user_id] = UserIdentity(
            user_id=user.user_id,
            username=user.username,
            full_name=user.full_name,
            email=user.email,
            phone_number=user.phone_number,
            device_tokens=remaining,
        )


class RecordingPublisher:
    """Live-event publisher that records events and reports ``sessions`` receivers."""

    def __init__(self, sessions: int = 1) -> None:
        self.sessions = sessions
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    async def publish(self, recipient_id: str, event_name: str, payload: dict[str, Any]) -> int:
        self.events.append((recipient_id, event_name, payload))
        return self.sessions

    def event_names(self) -> list[str]:
        return [name for _, name, _ in self.events]


class FakePushTransport:
    """Push transport returning scripted per-token outcomes.

    ``outcomes`` maps a token to a PushSendResult or an exception to raise;
    unscripted tokens succeed.
    """

    def __init__(self) -> None:
        self.outcomes: dict[str, PushSendResult | Exception] = {}
        self.calls: list[tuple[str, list[str], PushPlatform]] = []
        self.messages: list[PushMessage] = []

    def _outcome(self, token: str) -> PushSendResult:
        outcome = self.outcomes.get(token)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome or PushSendResult(token=token, success=True)

    async def send_to_device(self, token: str, platform: PushPlatform, message: PushMessage) -> PushSendResult:
        self.calls.append(("single", [token], platform))
        self.messages.append(message)
        return self._outcome(token)

    async def send_to_multiple_devices(
        self,
        tokens: list[str],
        platform: PushPlatform,
        message: PushMessage,
    ) -> list[PushSendResult]:
        self.calls.append(("multi", list(tokens), platform))
        self.messages.append(message)
        return [self._outcome(token) for token in tokens]


@pytest.fixture
def recipient() -> UserIdentity:
    return UserIdentity(
        user_id=RECIPIENT_ID,
        username="dana",
        email="dana@example.com",
        phone_number="+15550100",
        device_tokens=(DeviceToken(token="ios-token-1", platform=PushPlatform.IOS),),
    )


@pytest.fixture
def sender() -> UserIdentity:
    return UserIdentity(user_id=SENDER_ID, username="alex", full_name="Alex Doe")


@pytest.fixture
def identity_provider(recipient: UserIdentity, sender: UserIdentity) -> FakeIdentityProvider:
    return FakeIdentityProvider([recipient, sender])


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def push_transport() -> FakePushTransport:
    return FakePushTransport()


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def notification_settings() -> NotificationSettings:
    from notification_service.core.settings import NotificationSettings

    return NotificationSettings(
        retry_delays_seconds=[1, 5, 30],
        retry_max_attempts=3,
        scheduler_enabled=False,
    )


@pytest.fixture
def engine(
    session_factory: async_sessionmaker[AsyncSession],
    publisher: RecordingPublisher,
    identity_provider: FakeIdentityProvider,
    push_transport: FakePushTransport,
    notification_settings: NotificationSettings,
    clock,
) -> NotificationEngine:
    """Notification engine wired to the fakes; the retry queue is not started."""
    from notification_service.features.notifications import build_notification_engine

    return build_notification_engine(
        session_factory=session_factory,
        publisher=publisher,
        identity_provider=identity_provider,
        push_transport=push_transport,
        settings=notification_settings,
        clock=clock,
    )
