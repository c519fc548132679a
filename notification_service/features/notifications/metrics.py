"""Prometheus metrics for the notification engine.

Usage:
    from notification_service.features.notifications.metrics import (
        notification_delivered_total,
    )

    notification_delivered_total.labels(channel="push", status="failed").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# Lifecycle
# =============================================================================

notification_created_total = Counter(
    "notification_created_total",
    "Total number of notifications created",
    labelnames=["context", "type", "priority"],
)

# =============================================================================
# Delivery
# =============================================================================

notification_delivered_total = Counter(
    "notification_delivered_total",
    "Channel delivery outcomes",
    labelnames=["channel", "status"],
)
"""
Labels:
    channel: in_app, push, email, sms
    status: delivered, failed, skipped (gated off or soft no-op)
"""

notification_delivery_duration_seconds = Histogram(
    "notification_delivery_duration_seconds",
    "Time spent in a channel sender",
    labelnames=["channel"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# =============================================================================
# Push retries
# =============================================================================

notification_retry_total = Counter(
    "notification_retry_total",
    "Push retry queue transitions",
    labelnames=["outcome"],
)
"""
Labels:
    outcome: scheduled, delivered, exhausted
"""

notification_push_tokens_pruned_total = Counter(
    "notification_push_tokens_pruned_total",
    "Device tokens removed after an invalid-token response",
)

notification_retry_queue_size = Gauge(
    "notification_retry_queue_size",
    "Entries waiting in the in-memory push retry queue",
)


__all__ = [
    "notification_created_total",
    "notification_delivered_total",
    "notification_delivery_duration_seconds",
    "notification_push_tokens_pruned_total",
    "notification_retry_queue_size",
    "notification_retry_total",
]
