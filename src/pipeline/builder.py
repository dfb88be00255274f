"""Factory helpers for constructing AlertGraphPipeline instances."""

from __future__ import annotations

from dotenv import load_dotenv

from data.config import PrometheusConfig
from data.providers import PrometheusProvider
from notify.notifier import AlertNotifier
from notify.storage import FilesystemImageStore
from observability.state import get_pipeline_state
from plotting.config import RenderConfig
from plotting.renderer import ChartRenderer

from .service import AlertGraphPipeline


def build_pipeline_from_env(*, load_env: bool = True) -> AlertGraphPipeline:
    """Build a pipeline wired to Prometheus, the image store and the notifier."""

    if load_env:
        load_dotenv()
    prometheus = PrometheusConfig.from_env()
    return AlertGraphPipeline(
        PrometheusProvider(prometheus),
        ChartRenderer(RenderConfig.from_env()),
        store=FilesystemImageStore.from_env(),
        notifier=AlertNotifier.from_env(),
        resolution=prometheus.resolution,
        state=get_pipeline_state(),
    )


__all__ = ["build_pipeline_from_env"]
