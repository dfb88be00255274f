"""Observability utilities (pipeline state snapshots)."""

from .state import PipelineState, get_pipeline_state

__all__ = ["PipelineState", "get_pipeline_state"]
