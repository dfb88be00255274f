"""Alert to chart to notification pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, List, Mapping, Protocol, Sequence

from alerting.errors import AlertGraphError, ParseError, QueryError, RenderError
from alerting.expression import decompose
from alerting.models import Alert, AlertingCondition, TimeSeries
from alerting.selection import select_series
from alerting.window import MIN_LOOKBACK, QueryWindow, query_window
from infra.metrics import ALERTS_RECEIVED, CHARTS, NOTIFICATIONS, QUERY_DURATION, RENDER_DURATION
from notify.notifier import AlertNotifier
from notify.storage import ImageStore
from observability.state import PipelineState, get_pipeline_state
from plotting.renderer import ChartRenderer

_LOGGER = logging.getLogger("alertgraph.pipeline")


class MetricFetcher(Protocol):
    def query_range(
        self,
        formula: str,
        query_time: datetime,
        duration: timedelta,
        step: timedelta | None = None,
    ) -> List[TimeSeries]: ...


@dataclass(frozen=True, slots=True)
class ChartResult:
    """Outcome of charting one condition."""

    condition: AlertingCondition
    image: bytes | None = None
    error: AlertGraphError | None = None
    matched: bool = False

    @property
    def outcome(self) -> str:
        if self.error is not None:
            return "failed"
        if self.image is None:
            return "skipped"
        return "rendered"

    def failure(self) -> Mapping[str, str]:
        return {
            "formula": self.condition.formula,
            "kind": type(self.error).__name__,
            "error": str(self.error),
        }


@dataclass(slots=True)
class AlertCharts:
    alert: Alert
    window: QueryWindow
    charts: List[ChartResult] = field(default_factory=list)
    parse_error: str | None = None

    @property
    def images(self) -> List[bytes]:
        return [chart.image for chart in self.charts if chart.image is not None]

    @property
    def failures(self) -> List[ChartResult]:
        return [chart for chart in self.charts if chart.error is not None]


@dataclass(slots=True)
class AlertOutcome:
    alert: Alert
    image_urls: List[str] = field(default_factory=list)
    failures: List[Mapping[str, str]] = field(default_factory=list)
    notified: bool = False
    parse_error: str | None = None

    @property
    def ok(self) -> bool:
        return not self.failures

    def as_dict(self) -> Mapping[str, Any]:
        return {
            "alertname": self.alert.name,
            "status": self.alert.status,
            "fingerprint": self.alert.fingerprint,
            "image_urls": list(self.image_urls),
            "failures": list(self.failures),
            "notified": self.notified,
            "parse_error": self.parse_error,
        }


class AlertGraphPipeline:
    """Charts every condition of an alert and hands the images on."""

    def __init__(
        self,
        fetcher: MetricFetcher,
        renderer: ChartRenderer | None = None,
        *,
        store: ImageStore | None = None,
        notifier: AlertNotifier | None = None,
        resolution: timedelta = timedelta(seconds=15),
        min_lookback: timedelta = MIN_LOOKBACK,
        state: PipelineState | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._renderer = renderer or ChartRenderer()
        self._store = store
        self._notifier = notifier
        self._resolution = resolution
        self._min_lookback = min_lookback
        self._state = state or get_pipeline_state()

    @property
    def store(self) -> ImageStore | None:
        return self._store

    def conditions(self, alert: Alert) -> List[AlertingCondition]:
        """Decompose the alert's expression; raises :class:`ParseError`."""

        if not alert.generator_expression:
            raise ParseError("alert carries no generator expression")
        return decompose(alert.generator_expression)

    def charts_for_alert(self, alert: Alert) -> AlertCharts:
        window = query_window(alert.starts_at, alert.ends_at, min_lookback=self._min_lookback)
        result = AlertCharts(alert=alert, window=window)
        try:
            conditions = self.conditions(alert)
        except ParseError as exc:
            _LOGGER.warning("no charts for alert %s: %s", alert.name, exc)
            result.parse_error = str(exc)
            return result
        _LOGGER.info(
            "alert %s: %s condition(s), querying %s back from %s",
            alert.name,
            len(conditions),
            window.duration,
            window.query_time,
        )
        for condition in conditions:
            result.charts.append(self.render_condition(alert, condition, window))
        return result

    def render_condition(
        self,
        alert: Alert,
        condition: AlertingCondition,
        window: QueryWindow,
    ) -> ChartResult:
        try:
            with QUERY_DURATION.time():
                series = self._fetcher.query_range(
                    condition.formula,
                    window.query_time,
                    window.duration,
                    self._resolution,
                )
        except QueryError as exc:
            _LOGGER.error("query failed for %s: %s", condition.formula, exc)
            return ChartResult(condition=condition, error=exc)

        if not series:
            _LOGGER.warning("query returned no series for %s", condition.formula)
            return ChartResult(condition=condition)

        selection = select_series(series, alert.labels)
        _LOGGER.info("creating plot: %s", alert.summary or condition.formula)
        try:
            with RENDER_DURATION.time():
                image = self._renderer.render(
                    selection.series,
                    condition.threshold,
                    condition.direction,
                )
        except RenderError as exc:
            _LOGGER.error("render failed for %s: %s", condition.formula, exc)
            return ChartResult(condition=condition, error=exc, matched=selection.matched)
        return ChartResult(condition=condition, image=image, matched=selection.matched)

    def handle_alert(self, alert: Alert) -> AlertOutcome:
        """Chart, store and notify one alert."""

        ALERTS_RECEIVED.labels(status=alert.status).inc()
        self._state.record_alert(alert.status)
        charts = self.charts_for_alert(alert)
        outcome = AlertOutcome(alert=alert, parse_error=charts.parse_error)

        for chart in charts.charts:
            CHARTS.labels(outcome=chart.outcome).inc()
            kind = type(chart.error).__name__ if chart.error is not None else None
            self._state.record_chart(chart.outcome, error_kind=kind)
            if chart.error is not None:
                outcome.failures.append(chart.failure())
            elif chart.image is not None and self._store is not None:
                try:
                    url = self._store.save(chart.image)
                except OSError as exc:
                    _LOGGER.error("failed to store chart for %s: %s", chart.condition.formula, exc)
                    outcome.failures.append(
                        {"formula": chart.condition.formula, "kind": "StorageError", "error": str(exc)}
                    )
                    continue
                _LOGGER.info("graph uploaded, URL: %s", url)
                outcome.image_urls.append(url)

        if self._notifier is not None:
            failed = self._notifier.notify(alert, outcome.image_urls)
            outcome.notified = not failed
            NOTIFICATIONS.labels(outcome="sent" if outcome.notified else "failed").inc()
            self._state.record_notification(delivered=outcome.notified)

        self._state.record_outcome(outcome.as_dict())
        return outcome

    def handle_alerts(self, alerts: Sequence[Alert]) -> List[AlertOutcome]:
        return [self.handle_alert(alert) for alert in alerts]


__all__ = [
    "AlertCharts",
    "AlertGraphPipeline",
    "AlertOutcome",
    "ChartResult",
    "MetricFetcher",
]
