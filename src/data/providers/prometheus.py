"""Range queries against the Prometheus HTTP API."""

from __future__ import annotations

import time
from datetime import datetime, timedelta
from typing import Any, Callable, List, Mapping

import requests

from alerting.models import TimeSeries

from ..config import PrometheusConfig
from .base import BaseProvider, DataProviderError, TransientProviderError


class PrometheusProvider(BaseProvider):
    """Adapter for ``/api/v1/query_range``."""

    def __init__(
        self,
        config: PrometheusConfig,
        *,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(
            "prometheus",
            retries=config.retries,
            retry_delay=config.retry_delay_seconds,
            sleep=sleep,
        )
        self.config = config
        self._session = session or requests.Session()

    def ping(self) -> bool:
        try:
            response = self._session.get(
                f"{self.config.url}/-/healthy", timeout=self.config.timeout_seconds
            )
        except requests.RequestException:
            return False
        return response.ok

    def query_range(
        self,
        formula: str,
        query_time: datetime,
        duration: timedelta,
        step: timedelta | None = None,
    ) -> List[TimeSeries]:
        """Return every series ``formula`` produces over ``duration`` up to ``query_time``."""

        step = step or self.config.resolution
        start = query_time - duration
        params = {
            "query": formula,
            "start": f"{start.timestamp():.3f}",
            "end": f"{query_time.timestamp():.3f}",
            "step": f"{step.total_seconds():g}s",
        }
        self.logger.info("querying prometheus %s from %s to %s", formula, start, query_time)
        payload = self._execute(
            f"query_range {formula}",
            lambda: self._get("/api/v1/query_range", params),
        )
        data = payload.get("data") or {}
        if not isinstance(data, Mapping):
            raise DataProviderError(f"unexpected data section for range query: {type(data).__name__}")
        result_type = data.get("resultType")
        if result_type != "matrix":
            raise DataProviderError(f"unexpected result type {result_type!r} for range query")
        try:
            return [TimeSeries.from_matrix_entry(entry) for entry in data.get("result") or []]
        except (TypeError, ValueError, AttributeError) as exc:
            raise DataProviderError(f"malformed matrix result for {formula}: {exc}") from exc

    def _get(self, path: str, params: Mapping[str, str]) -> Mapping[str, Any]:
        url = f"{self.config.url}{path}"
        try:
            response = self._session.get(url, params=params, timeout=self.config.timeout_seconds)
        except requests.Timeout as exc:
            raise TransientProviderError(
                f"prometheus timed out after {self.config.timeout_seconds}s"
            ) from exc
        except requests.ConnectionError as exc:
            raise TransientProviderError(f"failed to connect to prometheus: {exc}") from exc
        except requests.RequestException as exc:
            raise DataProviderError(f"prometheus request failed: {exc}") from exc

        if response.status_code >= 500:
            raise TransientProviderError(f"prometheus returned HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise DataProviderError(
                f"failed to parse prometheus response (HTTP {response.status_code})"
            ) from exc
        if not isinstance(payload, Mapping):
            raise DataProviderError(
                f"unexpected prometheus response body: {type(payload).__name__}"
            )
        if payload.get("status") != "success":
            error_type = payload.get("errorType", "error")
            error = payload.get("error", "unknown error")
            raise DataProviderError(f"prometheus query failed: {error_type}: {error}")
        return payload
