"""Unit tests for the structured logging helpers."""
from __future__ import annotations

import json
import logging
import sys

import pytest

from notification_service.infra.logging import (
    ContextInjectingFilter,
    JSONFormatter,
    LazyString,
    clear_log_context,
    get_lazy_logger,
    get_log_context,
    get_logger,
    log_context,
    set_log_context,
)


def make_record(message: str = "Delivery settled", **extra) -> logging.LogRecord:
    record = logging.LogRecord("DeliveryManager", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def _reset_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.mark.unit
class TestLogContext:
    def test_log_context_restores_previous_fields(self):
        set_log_context(recipient_id="user-1")

        with log_context(notification_id="n-1"):
            assert get_log_context() == {"recipient_id": "user-1", "notification_id": "n-1"}

        assert get_log_context() == {"recipient_id": "user-1"}

    def test_filter_does_not_overwrite_record_attributes(self):
        record = make_record(notification_id="explicit")

        with log_context(notification_id="bound", channel="push"):
            assert ContextInjectingFilter().filter(record) is True

        assert record.notification_id == "explicit"
        assert record.channel == "push"

    def test_bound_logger_merges_extra(self, caplog):
        queue_logger = get_logger("retry-test", component="retry_queue").bind(attempt=2)

        with caplog.at_level(logging.INFO, logger="retry-test"):
            queue_logger.info("Tick", extra={"due": 3})

        record = caplog.records[-1]
        assert (record.component, record.attempt, record.due) == ("retry_queue", 2, 3)


@pytest.mark.unit
class TestJSONFormatter:
    def test_one_object_per_line(self):
        formatter = JSONFormatter(static={"service": "notification-service"})

        line = formatter.format(make_record(notification_id="n-1"))

        data = json.loads(line)
        assert data["level"] == "INFO"
        assert data["logger"] == "DeliveryManager"
        assert data["message"] == "Delivery settled"
        assert data["service"] == "notification-service"
        assert data["notification_id"] == "n-1"
        assert data["timestamp"].endswith("Z")
        assert "\n" not in line

    def test_exception_is_single_line(self):
        formatter = JSONFormatter()
        try:
            raise ValueError("bad token")
        except ValueError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())

        line = formatter.format(record)

        assert "\n" not in line
        assert "ValueError: bad token" in json.loads(line)["exception"]


@pytest.mark.unit
class TestLazyLogging:
    def test_callable_is_not_evaluated_when_disabled(self):
        calls = []
        lazy_logger = get_lazy_logger("lazy-disabled")
        lazy_logger.logger.setLevel(logging.INFO)

        lazy_logger.debug(lambda: calls.append("built") or "payload")

        assert calls == []

    def test_callable_is_evaluated_when_enabled(self, caplog):
        lazy_logger = get_lazy_logger("lazy-enabled")

        with caplog.at_level(logging.DEBUG, logger="lazy-enabled"):
            lazy_logger.debug(lambda: "Channel results: in_app")
            lazy_logger.info("Queue size: %s", lambda: 3)

        assert [r.getMessage() for r in caplog.records] == ["Channel results: in_app", "Queue size: 3"]

    def test_lazy_string(self):
        assert str(LazyString(lambda: 42)) == "42"
