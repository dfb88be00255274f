"""Webhook service receiving Alertmanager notifications."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles

from infra.metrics import latest_metrics
from observability.state import get_pipeline_state
from pipeline.service import AlertGraphPipeline

from .schemas import HookMessage

_LOGGER = logging.getLogger("alertgraph.api")


def create_app(
    pipeline: AlertGraphPipeline,
    *,
    debug: bool = False,
    charts_dir: str | Path | None = None,
) -> FastAPI:
    """Build the FastAPI application around an already wired pipeline."""

    app = FastAPI(title="alertgraph", version="0.1.0", docs_url="/docs")
    if charts_dir is not None:
        Path(charts_dir).mkdir(parents=True, exist_ok=True)
        app.mount("/charts", StaticFiles(directory=str(charts_dir)), name="charts")

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        _LOGGER.warning("error decoding message: %s", exc.errors())
        return JSONResponse({"error": "invalid request body"}, status_code=400)

    @app.get("/healthz", response_class=PlainTextResponse)
    def healthz() -> str:
        return "Ok!"

    @app.get("/status")
    def status() -> Dict[str, Any]:
        return dict(get_pipeline_state().snapshot())

    @app.get("/metrics")
    def metrics() -> Response:
        body, content_type = latest_metrics()
        return Response(content=body, media_type=content_type)

    @app.post("/webhook")
    def webhook(message: HookMessage) -> JSONResponse:
        if debug:
            _LOGGER.info("new request: %s", json.dumps(message.model_dump(mode="json", by_alias=True)))
        _LOGGER.info(
            "alerts: group_labels=%s, common_labels=%s",
            message.group_labels,
            message.common_labels,
        )

        outcomes = []
        for payload in message.alerts:
            alert = payload.to_alert()
            _LOGGER.info(
                "alert: status=%s, labels=%s, annotations=%s",
                alert.status,
                dict(alert.labels),
                dict(alert.annotations),
            )
            outcomes.append(pipeline.handle_alert(alert))

        failures = [
            {"alertname": outcome.alert.name, **failure}
            for outcome in outcomes
            for failure in outcome.failures
        ]
        body: Dict[str, Any] = {
            "success": not failures,
            "alerts": len(outcomes),
            "charts": sum(len(outcome.image_urls) for outcome in outcomes),
        }
        if failures:
            body["failures"] = failures
            return JSONResponse(body, status_code=500)
        return JSONResponse(body)

    return app


__all__ = ["create_app"]
