"""Metric data access for the alert graphing pipeline."""

from .config import PrometheusConfig

__all__ = ["PrometheusConfig"]
