from __future__ import annotations

from datetime import datetime, timezone

from alerting.models import Alert, AlertingCondition, Direction, TimeSeries


def test_from_matrix_entry_keeps_raw_values() -> None:
    series = TimeSeries.from_matrix_entry(
        {"metric": {"__name__": "up", "job": "api"}, "values": [[1700000000, "1"], [1700000015.5, "0"]]}
    )

    assert series.name == "up"
    assert series.samples == ((1700000000.0, "1"), (1700000015.5, "0"))
    assert series.sample_times()[0] == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


def test_label_text_is_sorted_and_quoted() -> None:
    series = TimeSeries(labels={"__name__": "up", "job": "api", "instance": "h:9100"})

    assert series.label_text() == 'up{instance="h:9100", job="api"}'


def test_label_text_without_labels() -> None:
    assert TimeSeries(labels={"__name__": "up"}).label_text() == "up"
    assert TimeSeries(labels={}).label_text() == "{}"
    assert TimeSeries(labels={"job": "a"}).label_text() == '{job="a"}'


def test_condition_as_dict_uses_direction_name() -> None:
    condition = AlertingCondition("x", Direction.LESS, 3.0)

    assert condition.as_dict() == {"formula": "x", "direction": "LESS", "threshold": 3.0}


def test_alert_name_and_summary() -> None:
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    alert = Alert(
        labels={"alertname": "HighLoad"},
        annotations={"summary": "load is high"},
        starts_at=now,
        ends_at=now,
        generator_expression="load > 4",
    )

    assert alert.name == "HighLoad"
    assert alert.summary == "load is high"
