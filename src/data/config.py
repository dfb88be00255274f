"""Configuration for the metrics backend."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping, MutableMapping

from alerting.errors import ConfigError
from infra.env import get_env, get_float, get_int, get_str


@dataclass(frozen=True)
class PrometheusConfig:
    """Where and how to run range queries for alert charts."""

    url: str
    resolution_seconds: int = 15
    timeout_seconds: float = 10.0
    retries: int = 2
    retry_delay_seconds: float = 1.0

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "PrometheusConfig":
        source = get_env(env)
        url = get_str(source, "PROMETHEUS_URL")
        if not url:
            raise ConfigError("PROMETHEUS_URL is required")
        return cls(
            url=url.rstrip("/"),
            resolution_seconds=get_int(source, "METRIC_RESOLUTION_SECONDS", 15),
            timeout_seconds=get_float(source, "PROMETHEUS_TIMEOUT_SECONDS", 10.0),
            retries=get_int(source, "PROMETHEUS_RETRIES", 2),
            retry_delay_seconds=get_float(source, "PROMETHEUS_RETRY_DELAY_SECONDS", 1.0),
        )

    @property
    def resolution(self) -> timedelta:
        return timedelta(seconds=self.resolution_seconds)

    def as_dict(self) -> MutableMapping[str, str | int | float]:
        """Expose configuration for debugging/log serialization."""

        return {
            "url": self.url,
            "resolution_seconds": self.resolution_seconds,
            "timeout_seconds": self.timeout_seconds,
            "retries": self.retries,
            "retry_delay_seconds": self.retry_delay_seconds,
        }
