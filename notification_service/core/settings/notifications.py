"""Notification engine settings."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NotificationSettings(BaseSettings):
    """Delivery, retry and sweep settings for the notification engine.

    Environment variables use NOTIFY_ prefix.
    Example: NOTIFY_RETRY_MAX_ATTEMPTS=5, NOTIFY_RETRY_DELAYS_SECONDS='[1, 5, 30]'
    """

    # ──────────────────────────────────────────────────────────────
    # Push retry queue
    # ──────────────────────────────────────────────────────────────

    retry_delays_seconds: list[float] = Field(
        default_factory=lambda: [1.0, 5.0, 30.0],
        min_length=1,
        description="Backoff ladder; attempt n waits ladder[min(n, len - 1)] seconds",
    )

    retry_max_attempts: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Push retries allowed before the channel is marked permanently failed",
    )

    retry_tick_interval_seconds: float = Field(
        default=30.0,
        gt=0,
        le=3600,
        description="How often the retry queue scans for due entries",
    )

    # ──────────────────────────────────────────────────────────────
    # Preference evaluation
    # ──────────────────────────────────────────────────────────────

    quiet_hours_bypass_types: list[str] = Field(
        default_factory=lambda: ["call_incoming", "system_announcement", "match"],
        description="Notification types delivered even during quiet hours",
    )

    # ──────────────────────────────────────────────────────────────
    # Listing
    # ──────────────────────────────────────────────────────────────

    list_query_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Upper bound for a single notification listing query",
    )

    default_page_size: int = Field(default=20, ge=1, le=100)

    max_page_size: int = Field(default=100, ge=1, le=1000)

    # ──────────────────────────────────────────────────────────────
    # Background sweeps
    # ──────────────────────────────────────────────────────────────

    scheduler_enabled: bool = Field(
        default=True,
        description="Run the pending-delivery and expiry sweeps in-process",
    )

    pending_sweep_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Interval of the scheduled-delivery sweep",
    )

    expiry_sweep_interval_seconds: float = Field(
        default=3600.0,
        gt=0,
        description="Interval of the expired-notification cleanup",
    )

    model_config = SettingsConfigDict(
        env_prefix="NOTIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @field_validator("retry_delays_seconds")
    @classmethod
    def validate_retry_ladder(cls, value: list[float]) -> list[float]:
        """Reject non-positive or descending backoff ladders."""
        if any(delay <= 0 for delay in value):
            msg = "retry delays must be positive"
            raise ValueError(msg)
        if value != sorted(value):
            msg = "retry delays must be in ascending order"
            raise ValueError(msg)
        return value

    def retry_delay_for(self, attempt: int) -> float:
        """Return the backoff delay (seconds) for the given attempt number."""
        ladder = self.retry_delays_seconds
        return ladder[min(attempt, len(ladder) - 1)]
