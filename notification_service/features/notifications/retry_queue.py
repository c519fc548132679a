"""In-memory retry queue for transient push failures.

Each entry moves through ``enqueued -> due -> delivered | re-enqueued |
permanently failed``. Attempt *n* waits ``retry_delays_seconds[min(n, len - 1)]``
seconds. A tick loop scans for due entries; a single in-flight flag keeps
overlapping ticks from processing the same entries twice. The queue lives
in process memory and is lost on restart; the persisted notification still
records what was delivered.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any
from uuid import UUID

from notification_service.core.database import utcnow
from notification_service.features.notifications.channels import DeliveryResult
from notification_service.features.notifications.enums import DeliveryChannel
from notification_service.features.notifications.metrics import (
    notification_retry_queue_size,
    notification_retry_total,
)
from notification_service.features.notifications.models import Notification
from notification_service.infra.logging import get_lazy_logger, log_context

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from notification_service.core.settings import NotificationSettings

Redeliver = Callable[["AsyncSession", Notification], Awaitable[DeliveryResult]]


@dataclass(slots=True, frozen=True)
class RetryEntry:
    """A scheduled push retry.

    ``attempt`` counts the retry this entry will perform (1 for the first).
    """

    notification_id: UUID
    attempt: int
    retry_at: datetime
    enqueued_at: datetime


class PushRetryQueue:
    """Schedules and runs push retries with a fixed backoff ladder."""

    def __init__(
        self,
        settings: NotificationSettings,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        redeliver: Redeliver | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._settings = settings
        self._session_factory = session_factory
        self._redeliver = redeliver
        self._clock = clock
        self._entries: dict[UUID, RetryEntry] = {}
        self._processing = False
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._logger = logging.getLogger(__name__)
        self._lazy = get_lazy_logger(__name__)

    def set_redeliver(self, redeliver: Redeliver) -> None:
        self._redeliver = redeliver

    @property
    def max_attempts(self) -> int:
        return self._settings.retry_max_attempts

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> list[RetryEntry]:
        return sorted(self._entries.values(), key=lambda entry: entry.retry_at)

    async def enqueue(self, notification_id: UUID, attempt: int) -> bool:
        """Schedule the next retry after ``attempt`` failed tries.

        Returns:
            True when a retry was scheduled, False when the attempts are
            exhausted and push was marked permanently failed instead.
        """
        if attempt >= self.max_attempts:
            await self._mark_permanently_failed(notification_id, attempt)
            return False

        now = self._clock()
        delay = self._settings.retry_delay_for(attempt)
        entry = RetryEntry(
            notification_id=notification_id,
            attempt=attempt + 1,
            retry_at=now + timedelta(seconds=delay),
            enqueued_at=now,
        )
        # A newer entry replaces an older one for the same notification
        self._entries[notification_id] = entry
        notification_retry_queue_size.set(len(self._entries))
        notification_retry_total.labels(outcome="scheduled").inc()
        self._logger.info(
            "Push retry scheduled",
            extra={
                "notification_id": str(notification_id),
                "attempt": entry.attempt,
                "delay_seconds": delay,
            },
        )
        return True

    def _take_due(self) -> list[RetryEntry]:
        now = self._clock()
        due = [entry for entry in self._entries.values() if entry.retry_at <= now]
        for entry in due:
            del self._entries[entry.notification_id]
        notification_retry_queue_size.set(len(self._entries))
        return sorted(due, key=lambda entry: entry.retry_at)

    def _requeue(self, entry: RetryEntry) -> None:
        """Put a taken entry back unless a newer one replaced it."""
        self._entries.setdefault(entry.notification_id, entry)
        notification_retry_queue_size.set(len(self._entries))

    async def process_due(self) -> int:
        """Retry every due entry once.

        Returns:
            Number of entries processed; 0 when another tick is still running
        """
        if self._processing:
            self._lazy.debug(lambda: "Retry tick skipped; previous tick still processing")
            return 0
        redeliver = self._redeliver
        if redeliver is None:
            msg = "PushRetryQueue has no redeliver callback"
            raise RuntimeError(msg)

        self._processing = True
        try:
            due = self._take_due()
            for entry in due:
                try:
                    await self._retry(entry, redeliver)
                except Exception:
                    self._logger.exception(
                        "Push retry entry failed; requeued",
                        extra={"notification_id": str(entry.notification_id), "attempt": entry.attempt},
                    )
                    self._requeue(entry)
            return len(due)
        finally:
            self._processing = False

    async def _retry(self, entry: RetryEntry, redeliver: Redeliver) -> None:
        with log_context(notification_id=str(entry.notification_id), retry_attempt=entry.attempt):
            try:
                async with self._session_factory() as session:
                    notification = await session.get(Notification, entry.notification_id)
                    if notification is None:
                        self._logger.info("Notification gone; dropping push retry")
                        return
                    if notification.push_delivered or notification.push_permanently_failed:
                        self._lazy.debug(lambda: "Push already settled; retry skipped")
                        return
                    notification.push_retry_attempts = entry.attempt
                    result = await redeliver(session, notification)
                    await session.commit()
            except Exception:
                self._logger.exception("Push retry raised; treating as transient")
                await self.enqueue(entry.notification_id, entry.attempt)
                return

            if result.delivered:
                notification_retry_total.labels(outcome="delivered").inc()
                self._logger.info("Push retry delivered")
            elif result.is_transient_failure:
                await self.enqueue(entry.notification_id, entry.attempt)
            else:
                self._logger.info(
                    "Push retry stopped",
                    extra={"error_category": result.error_category, "skip_reason": result.skip_reason},
                )

    async def _mark_permanently_failed(self, notification_id: UUID, attempts: int) -> None:
        notification_retry_total.labels(outcome="exhausted").inc()
        self._logger.warning(
            "Push retries exhausted",
            extra={"notification_id": str(notification_id), "attempts": attempts},
        )
        async with self._session_factory() as session:
            notification = await session.get(Notification, notification_id)
            if notification is None:
                return
            notification.push_permanently_failed = True
            notification.record_channel_outcome(DeliveryChannel.PUSH, delivered=False)
            notification.recompute_delivery_status()
            await session.commit()

    # ──────────────────────────────────────────────────────────────
    # Tick loop
    # ──────────────────────────────────────────────────────────────

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._tick_loop())
        self._logger.info(
            "Push retry queue started",
            extra={"tick_interval": self._settings.retry_tick_interval_seconds},
        )

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        self._logger.info("Push retry queue stopped", extra={"pending": len(self._entries)})

    async def _tick_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._settings.retry_tick_interval_seconds)
            try:
                await self.process_due()
            except Exception:
                self._logger.exception("Push retry tick failed")

    def status(self) -> dict[str, Any]:
        next_entry = min(self._entries.values(), key=lambda entry: entry.retry_at, default=None)
        return {
            "queue_size": len(self._entries),
            "processing": self._processing,
            "next_retry": next_entry.retry_at.isoformat() if next_entry else None,
        }

    def clear(self) -> None:
        self._entries.clear()
        notification_retry_queue_size.set(0)


__all__ = ["PushRetryQueue", "Redeliver", "RetryEntry"]
