"""Logging configuration settings."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Structured logging configuration.

    Environment variables use LOG_ prefix.
    Example: LOG_LEVEL=DEBUG, LOG_JSON_LOGS=false
    """

    service_name: str = Field(
        default="notification-service",
        description="Service name included as a static field in JSON records",
    )

    level: LogLevel = Field(default="INFO", description="Root logger level")

    json_logs: bool = Field(
        default=True,
        description="Emit JSON Lines instead of plain text",
    )

    include_process_info: bool = Field(default=False)

    logger_levels: dict[str, LogLevel] = Field(
        default_factory=lambda: {"sqlalchemy.engine": "WARNING", "apscheduler": "WARNING"},
        description="Per-logger level overrides",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    def to_logging_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for configure_logging()."""
        return {
            "log_level": self.level,
            "json_logs": self.json_logs,
            "service_name": self.service_name,
            "include_process_info": self.include_process_info,
            "logger_levels": dict(self.logger_levels),
        }
