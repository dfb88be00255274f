"""Prometheus metrics exported by the webhook service."""

from __future__ import annotations

from typing import Tuple

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

ALERTS_RECEIVED = Counter(
    "alertgraph_alerts_received_total",
    "Alerts received from Alertmanager",
    ["status"],
)
CHARTS = Counter(
    "alertgraph_charts_total",
    "Charted conditions by outcome",
    ["outcome"],
)
NOTIFICATIONS = Counter(
    "alertgraph_notifications_total",
    "Notifications by delivery outcome",
    ["outcome"],
)
QUERY_DURATION = Histogram(
    "alertgraph_query_duration_seconds",
    "Duration of metric range queries",
)
RENDER_DURATION = Histogram(
    "alertgraph_render_duration_seconds",
    "Duration of chart rendering",
)


def latest_metrics() -> Tuple[bytes, str]:
    """Return the scrape payload and its content type."""

    return generate_latest(), CONTENT_TYPE_LATEST


__all__ = [
    "ALERTS_RECEIVED",
    "CHARTS",
    "NOTIFICATIONS",
    "QUERY_DURATION",
    "RENDER_DURATION",
    "latest_metrics",
]
