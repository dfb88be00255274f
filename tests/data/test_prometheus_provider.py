from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import pytest
import requests

from alerting.errors import ConfigError, QueryError
from data.config import PrometheusConfig
from data.providers.base import DataProviderError, TransientProviderError
from data.providers.prometheus import PrometheusProvider

QUERY_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

MATRIX = {
    "status": "success",
    "data": {
        "resultType": "matrix",
        "result": [
            {"metric": {"__name__": "up", "job": "a"}, "values": [[1704110400, "1"]]},
            {"metric": {"__name__": "up", "job": "b"}, "values": [[1704110400, "0"]]},
        ],
    },
}


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None) -> None:
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, *responses: Any) -> None:
        self._responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def get(self, url: str, params: Any = None, timeout: float | None = None) -> FakeResponse:
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _provider(session: FakeSession, **overrides: Any) -> PrometheusProvider:
    config = PrometheusConfig(url="http://prometheus:9090", retry_delay_seconds=0.5, **overrides)
    return PrometheusProvider(config, session=session, sleep=lambda _: None)


def test_query_range_returns_series() -> None:
    session = FakeSession(FakeResponse(payload=MATRIX))

    series = _provider(session).query_range("up", QUERY_TIME, timedelta(minutes=20))

    assert [item.labels["job"] for item in series] == ["a", "b"]
    assert series[0].samples == ((1704110400.0, "1"),)
    call = session.calls[0]
    assert call["url"] == "http://prometheus:9090/api/v1/query_range"
    assert call["params"] == {
        "query": "up",
        "start": "1704109200.000",
        "end": "1704110400.000",
        "step": "15s",
    }
    assert call["timeout"] == 10.0


def test_explicit_step() -> None:
    session = FakeSession(FakeResponse(payload=MATRIX))

    _provider(session).query_range("up", QUERY_TIME, timedelta(minutes=20), timedelta(seconds=30))

    assert session.calls[0]["params"]["step"] == "30s"


def test_transient_error_is_retried() -> None:
    sleeps: List[float] = []
    session = FakeSession(FakeResponse(status_code=503), FakeResponse(payload=MATRIX))
    config = PrometheusConfig(url="http://prometheus:9090", retry_delay_seconds=0.5)
    provider = PrometheusProvider(config, session=session, sleep=sleeps.append)

    series = provider.query_range("up", QUERY_TIME, timedelta(minutes=20))

    assert len(series) == 2
    assert sleeps == [0.5]


def test_timeout_gives_up_after_retries() -> None:
    session = FakeSession(requests.Timeout("slow"), requests.Timeout("slow"))

    with pytest.raises(TransientProviderError) as info:
        _provider(session).query_range("up", QUERY_TIME, timedelta(minutes=20))

    assert isinstance(info.value, QueryError)
    assert len(session.calls) == 2


def test_error_status_is_not_retried() -> None:
    payload = {"status": "error", "errorType": "bad_data", "error": "parse error"}
    session = FakeSession(FakeResponse(status_code=400, payload=payload))

    with pytest.raises(DataProviderError, match="bad_data: parse error"):
        _provider(session).query_range("up{", QUERY_TIME, timedelta(minutes=20))

    assert len(session.calls) == 1


def test_non_matrix_result_is_rejected() -> None:
    payload = {"status": "success", "data": {"resultType": "vector", "result": []}}
    session = FakeSession(FakeResponse(payload=payload))

    with pytest.raises(DataProviderError, match="vector"):
        _provider(session).query_range("up", QUERY_TIME, timedelta(minutes=20))


def test_invalid_json_is_rejected() -> None:
    session = FakeSession(FakeResponse(status_code=200, payload=None))

    with pytest.raises(DataProviderError):
        _provider(session).query_range("up", QUERY_TIME, timedelta(minutes=20))


def test_ping() -> None:
    assert _provider(FakeSession(FakeResponse(status_code=200))).ping() is True
    assert _provider(FakeSession(requests.ConnectionError("down"))).ping() is False


def test_config_from_env() -> None:
    config = PrometheusConfig.from_env(
        {"PROMETHEUS_URL": "http://prometheus:9090/", "METRIC_RESOLUTION_SECONDS": "30"}
    )

    assert config.url == "http://prometheus:9090"
    assert config.resolution == timedelta(seconds=30)
    assert config.as_dict()["retries"] == 2


def test_config_requires_url() -> None:
    with pytest.raises(ConfigError):
        PrometheusConfig.from_env({})


def test_config_rejects_bad_numbers() -> None:
    with pytest.raises(ConfigError):
        PrometheusConfig.from_env({"PROMETHEUS_URL": "http://p", "PROMETHEUS_RETRIES": "many"})


def test_non_object_body_is_rejected() -> None:
    session = FakeSession(FakeResponse(payload=["not", "a", "dict"]))

    with pytest.raises(DataProviderError, match="list"):
        _provider(session).query_range("up", QUERY_TIME, timedelta(minutes=20))


def test_non_object_data_section_is_rejected() -> None:
    session = FakeSession(FakeResponse(payload={"status": "success", "data": ["matrix"]}))

    with pytest.raises(DataProviderError):
        _provider(session).query_range("up", QUERY_TIME, timedelta(minutes=20))


@pytest.mark.parametrize(
    "values",
    [
        [["1700000000", "1"], [None, "2"]],
        [["bad", "1"]],
        [["1700000000"]],
    ],
)
def test_malformed_samples_are_rejected(values: List[Any]) -> None:
    payload = {
        "status": "success",
        "data": {"resultType": "matrix", "result": [{"metric": {"__name__": "up"}, "values": values}]},
    }
    session = FakeSession(FakeResponse(payload=payload))

    with pytest.raises(QueryError, match="malformed matrix result"):
        _provider(session).query_range("up", QUERY_TIME, timedelta(minutes=20))
