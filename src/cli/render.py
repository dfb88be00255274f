"""CLI for charting an alerting expression without Alertmanager."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import typer
from dotenv import load_dotenv

from alerting.errors import ParseError
from alerting.expression import decompose
from alerting.models import Alert
from alerting.window import ZERO_TIME
from data.config import PrometheusConfig
from data.providers import PrometheusProvider
from infra.logging import configure_logging
from pipeline.service import AlertGraphPipeline
from plotting.config import RenderConfig
from plotting.renderer import ChartRenderer

app = typer.Typer(help="Render alert charts from the command line")


def _configure_environment() -> None:
    load_dotenv()
    configure_logging(run_id=os.environ.get("RUN_ID"), environment=os.environ.get("ENVIRONMENT"))


def _build_pipeline() -> AlertGraphPipeline:
    config = PrometheusConfig.from_env()
    return AlertGraphPipeline(
        PrometheusProvider(config),
        ChartRenderer(RenderConfig.from_env()),
        resolution=config.resolution,
    )


def _parse_time(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid timestamp: {value}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_labels(values: List[str]) -> Dict[str, str]:
    labels: Dict[str, str] = {}
    for value in values:
        key, sep, label_value = value.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Labels must look like key=value, got {value!r}")
        labels[key.strip()] = label_value.strip()
    return labels


@app.command()
def conditions(expression: str = typer.Argument(..., help="PromQL alerting expression")) -> None:
    """Print the threshold conditions recovered from EXPRESSION."""

    try:
        found = decompose(expression)
    except ParseError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if not found:
        typer.echo("No chartable conditions.")
        return
    for condition in found:
        typer.echo(json.dumps(condition.as_dict()))


@app.command()
def chart(
    expression: str = typer.Argument(..., help="PromQL alerting expression"),
    start: str = typer.Option(..., "--start", help="Alert start (ISO 8601)"),
    end: Optional[str] = typer.Option(None, "--end", help="Alert end (ISO 8601); omit while firing"),
    label: Optional[List[str]] = typer.Option(
        None,
        "--label",
        "-l",
        help="Alert label key=value (may be specified multiple times)",
    ),
    output_dir: str = typer.Option("storage/charts", "--output-dir", help="Output directory"),
) -> None:
    """Render one PNG per condition of EXPRESSION."""

    _configure_environment()
    alert = Alert(
        labels=_parse_labels(label or []),
        annotations={},
        starts_at=_parse_time(start),
        ends_at=_parse_time(end) if end else ZERO_TIME,
        generator_expression=expression,
    )
    pipeline = _build_pipeline()
    charts = pipeline.charts_for_alert(alert)
    if charts.parse_error:
        raise typer.BadParameter(charts.parse_error)

    target = Path(output_dir)
    target.mkdir(parents=True, exist_ok=True)
    for index, result in enumerate(charts.charts):
        if result.image is not None:
            path = target / f"condition_{index}.png"
            path.write_bytes(result.image)
            typer.echo(f"{result.condition.formula} -> {path}")
        elif result.error is not None:
            typer.echo(f"{result.condition.formula} failed: {result.error}", err=True)
        else:
            typer.echo(f"{result.condition.formula}: no data")
    if charts.failures:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
