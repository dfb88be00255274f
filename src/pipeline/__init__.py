"""End-to-end alert charting pipeline."""

from .builder import build_pipeline_from_env
from .service import AlertCharts, AlertGraphPipeline, AlertOutcome, ChartResult

__all__ = [
    "AlertCharts",
    "AlertGraphPipeline",
    "AlertOutcome",
    "ChartResult",
    "build_pipeline_from_env",
]
