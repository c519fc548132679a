"""Live-session (WebSocket) settings."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WebSocketSettings(BaseSettings):
    """Settings for the live-session connection manager.

    Environment variables use WS_ prefix.
    Example: WS_HEARTBEAT_INTERVAL=30
    """

    # ──────────────────────────────────────────────────────────────
    # Connection limits
    # ──────────────────────────────────────────────────────────────

    max_connections: int = Field(
        default=10000,
        ge=1,
        le=100000,
        description="Maximum concurrent live sessions per instance",
    )

    max_connections_per_user: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum live sessions per user ID",
    )

    # ──────────────────────────────────────────────────────────────
    # Heartbeat and timeout settings
    # ──────────────────────────────────────────────────────────────

    heartbeat_interval: float = Field(
        default=30.0,
        ge=0,
        le=300,
        description="Interval between ping messages in seconds (0 to disable)",
    )

    send_timeout: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="Timeout for a single send to one session",
    )

    model_config = SettingsConfigDict(
        env_prefix="WS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
