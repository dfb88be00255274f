"""Metric backends queried for alert charts."""

from .base import BaseProvider, DataProviderError, TransientProviderError
from .prometheus import PrometheusProvider

__all__ = [
    "BaseProvider",
    "DataProviderError",
    "PrometheusProvider",
    "TransientProviderError",
]
