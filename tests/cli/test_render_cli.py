from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from alerting.models import TimeSeries
from cli import render as render_cli
from observability.state import PipelineState
from pipeline.service import AlertGraphPipeline

runner = CliRunner()


class FakeFetcher:
    def __init__(self) -> None:
        self.calls = []

    def query_range(self, formula, query_time, duration, step=None):
        self.calls.append((formula, query_time, duration))
        return [TimeSeries(labels={"__name__": formula}, samples=((1704110400.0, "3"),))]


class FakeRenderer:
    def render(self, series, threshold, direction) -> bytes:
        return b"\x89PNG"


def test_conditions_prints_one_line_per_condition() -> None:
    result = runner.invoke(render_cli.app, ["conditions", "cpu > 80 and mem <= 10"])

    assert result.exit_code == 0
    lines = [json.loads(line) for line in result.stdout.splitlines()]
    assert lines == [
        {"formula": "cpu", "direction": "GREATER", "threshold": 80.0},
        {"formula": "mem", "direction": "LESS", "threshold": 10.0},
    ]


def test_conditions_without_chartable_parts() -> None:
    result = runner.invoke(render_cli.app, ["conditions", "up"])

    assert result.exit_code == 0
    assert "No chartable conditions." in result.stdout


def test_conditions_rejects_invalid_expression() -> None:
    result = runner.invoke(render_cli.app, ["conditions", "cpu >"])

    assert result.exit_code != 0


def test_chart_writes_one_file_per_condition(monkeypatch, tmp_path: Path) -> None:
    fetcher = FakeFetcher()
    pipeline = AlertGraphPipeline(fetcher, FakeRenderer(), state=PipelineState())
    monkeypatch.setattr(render_cli, "_configure_environment", lambda: None)
    monkeypatch.setattr(render_cli, "_build_pipeline", lambda: pipeline)

    result = runner.invoke(
        render_cli.app,
        [
            "chart",
            "cpu > 80 and mem < 10",
            "--start",
            "2024-01-01T12:00:00Z",
            "--label",
            "job=api",
            "--output-dir",
            str(tmp_path),
        ],
    )

    assert result.exit_code == 0, result.stdout
    assert (tmp_path / "condition_0.png").read_bytes() == b"\x89PNG"
    assert (tmp_path / "condition_1.png").exists()
    assert [call[0] for call in fetcher.calls] == ["cpu", "mem"]


def test_chart_rejects_bad_label(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(render_cli, "_configure_environment", lambda: None)

    result = runner.invoke(
        render_cli.app,
        ["chart", "cpu > 1", "--start", "2024-01-01T12:00:00Z", "-l", "oops", "--output-dir", str(tmp_path)],
    )

    assert result.exit_code != 0
