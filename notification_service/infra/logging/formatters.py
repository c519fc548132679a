"""JSON Lines log formatter."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    }
)


class JSONFormatter(logging.Formatter):
    """One JSON object per line with UTC millisecond timestamps.

    Context fields injected by ContextInjectingFilter and anything passed via
    ``extra=`` end up as top-level keys.

    Example output:
        {"level": "INFO", "logger": "DeliveryManager", "message": "Delivery settled",
         "timestamp": "2025-01-01T00:00:00.123Z", "notification_id": "0190..."}
    """

    def __init__(
        self,
        static: dict[str, Any] | None = None,
        include_process_info: bool = False,
    ) -> None:
        super().__init__()
        self.fmt_keys = {"level": "levelname", "logger": "name", "message": "message"}
        self.static = static or {}
        self.include_process_info = include_process_info

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        data: dict[str, Any] = {k: getattr(record, v, None) for k, v in self.fmt_keys.items()}

        data["timestamp"] = (
            datetime.fromtimestamp(record.created, tz=UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

        if self.include_process_info:
            data["process_id"] = record.process
            data["process_name"] = record.processName

        # Keep one record per line
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info).replace("\n", "\\n")
        if record.stack_info:
            data["stack_trace"] = record.stack_info.replace("\n", "\\n")

        data.update(self.static)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in data:
                data[key] = value

        return json.dumps(data, ensure_ascii=False, default=str)
