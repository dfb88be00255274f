"""CLI entrypoint to run the alertgraph webhook service."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone

import typer
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from api.app import create_app
from data.config import PrometheusConfig
from data.providers import PrometheusProvider
from infra.env import get_bool
from infra.logging import configure_logging
from notify.storage import FilesystemImageStore
from pipeline.builder import build_pipeline_from_env

app = typer.Typer(help="alertgraph webhook service")


def _configure_environment() -> None:
    load_dotenv()
    run_id = os.environ.get("RUN_ID")
    if not run_id:
        run_id = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        os.environ["RUN_ID"] = run_id
    configure_logging(run_id=run_id, environment=os.environ.get("ENVIRONMENT"))


def _build_app() -> FastAPI:
    pipeline = build_pipeline_from_env(load_env=False)
    store = pipeline.store
    charts_dir = store.directory if isinstance(store, FilesystemImageStore) else None
    return create_app(
        pipeline,
        debug=get_bool(os.environ, "DEBUG", False),
        charts_dir=charts_dir,
    )


@app.command()
def run(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind"),
    port: int = typer.Option(8080, "--port", "-p", help="Port to listen on"),
) -> None:
    """Serve the webhook until interrupted."""

    _configure_environment()
    service = _build_app()
    typer.echo(f"Listening on {host}:{port} (Ctrl+C to stop)")
    uvicorn.run(service, host=host, port=port, log_config=None)


@app.command()
def health(pretty: bool = typer.Option(True, "--pretty/--raw", help="Pretty-print JSON")) -> None:
    """Show backend configuration and reachability without serving."""

    _configure_environment()
    config = PrometheusConfig.from_env()
    provider = PrometheusProvider(config)
    report = {
        "prometheus": {**config.as_dict(), "available": provider.ping()},
        "retry": dict(provider.retry_info()),
    }
    typer.echo(json.dumps(report, indent=2 if pretty else None))


if __name__ == "__main__":
    app()
