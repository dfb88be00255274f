from __future__ import annotations

from datetime import datetime, timedelta, timezone

from alerting.window import MIN_LOOKBACK, ZERO_TIME, QueryWindow, query_window

T = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_short_resolved_alert_uses_minimum_lookback() -> None:
    window = query_window(T, T + timedelta(minutes=5))

    assert window == QueryWindow(T + timedelta(minutes=5), MIN_LOOKBACK)


def test_long_resolved_alert_covers_active_period() -> None:
    window = query_window(T, T + timedelta(hours=1))

    assert window.query_time == T + timedelta(hours=1)
    assert window.duration == timedelta(hours=1)
    assert window.start == T


def test_still_firing_alert_ends_at_start() -> None:
    assert query_window(T, T - timedelta(minutes=1)) == QueryWindow(T, MIN_LOOKBACK)


def test_zero_end_time_means_still_firing() -> None:
    window = query_window(T, ZERO_TIME)

    assert window.query_time == T
    assert window.duration == timedelta(minutes=20)


def test_equal_times_use_minimum_lookback() -> None:
    assert query_window(T, T) == QueryWindow(T, MIN_LOOKBACK)


def test_duration_never_below_lookback() -> None:
    for minutes in (0, 1, 19, 20, 21, 90):
        window = query_window(T, T + timedelta(minutes=minutes))
        assert window.duration >= MIN_LOOKBACK


def test_custom_lookback() -> None:
    window = query_window(T, ZERO_TIME, min_lookback=timedelta(minutes=5))

    assert window.start == T - timedelta(minutes=5)


def test_naive_datetimes_are_treated_as_utc() -> None:
    window = query_window(datetime(2024, 1, 1, 12, 0), datetime(2024, 1, 1, 14, 0))

    assert window.query_time == datetime(2024, 1, 1, 14, 0, tzinfo=timezone.utc)
    assert window.duration == timedelta(hours=2)
