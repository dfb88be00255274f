"""Query window derived from an alert's firing interval."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

MIN_LOOKBACK = timedelta(minutes=20)
# Alertmanager reports this as the end of alerts that have not resolved yet
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True, slots=True)
class QueryWindow:
    query_time: datetime
    duration: timedelta

    @property
    def start(self) -> datetime:
        return self.query_time - self.duration


def query_window(
    starts_at: datetime,
    ends_at: datetime,
    *,
    min_lookback: timedelta = MIN_LOOKBACK,
) -> QueryWindow:
    """Return the range to re-query for an alert.

    Alerts still firing carry an ``ends_at`` before ``starts_at`` (Alertmanager
    sends the zero time); those are charted over ``min_lookback`` up to the
    start. Resolved alerts cover their whole active period, never less than
    ``min_lookback``.
    """

    starts_at = _as_utc(starts_at)
    ends_at = _as_utc(ends_at)
    if starts_at > ends_at:
        return QueryWindow(query_time=starts_at, duration=min_lookback)
    return QueryWindow(query_time=ends_at, duration=max(ends_at - starts_at, min_lookback))


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


__all__ = ["MIN_LOOKBACK", "QueryWindow", "ZERO_TIME", "query_window"]
