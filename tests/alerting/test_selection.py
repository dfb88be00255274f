from __future__ import annotations

from alerting.models import TimeSeries
from alerting.selection import labels_agree, select_series


def _series(**labels: str) -> TimeSeries:
    return TimeSeries(labels={"__name__": "up", **labels}, samples=((0.0, "1"),))


def test_first_agreeing_series_is_selected() -> None:
    a = _series(job="a")
    b = _series(job="b")
    b2 = _series(job="b", instance="x")

    result = select_series([a, b, b2], {"job": "b"})

    assert result.series == (b,)
    assert result.matched is True


def test_falls_back_to_all_series_when_nothing_agrees() -> None:
    a = _series(job="a")
    b = _series(job="b")

    result = select_series([a, b], {"job": "c"})

    assert result.series == (a, b)
    assert result.matched is False


def test_series_sharing_no_labels_counts_as_match() -> None:
    bare = TimeSeries(labels={}, samples=())

    result = select_series([bare, _series(job="a")], {"alertname": "Down", "job": "a"})

    assert result.series == (bare,)
    assert result.matched is True


def test_labels_agree_ignores_labels_missing_on_either_side() -> None:
    assert labels_agree({"job": "a", "zone": "eu"}, {"job": "a", "alertname": "x"})
    assert not labels_agree({"job": "a"}, {"job": "b"})


def test_empty_input_selects_nothing() -> None:
    result = select_series([], {"job": "a"})

    assert result.series == ()
    assert result.matched is False
