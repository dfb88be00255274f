"""Domain records passed between the pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Sequence, Tuple

METRIC_NAME_LABEL = "__name__"

Sample = Tuple[float, Any]


class Direction(str, Enum):
    """Side of the threshold that counts as a breach."""

    LESS = "<"
    GREATER = ">"


@dataclass(frozen=True, slots=True)
class AlertingCondition:
    """One leaf comparison recovered from an alerting expression."""

    formula: str
    direction: Direction
    threshold: float

    def as_dict(self) -> Mapping[str, Any]:
        return {
            "formula": self.formula,
            "direction": self.direction.name,
            "threshold": self.threshold,
        }


@dataclass(frozen=True, slots=True)
class Alert:
    """Single alert as delivered by Alertmanager, reduced to what charting needs."""

    labels: Mapping[str, str]
    annotations: Mapping[str, str]
    starts_at: datetime
    ends_at: datetime
    generator_expression: str
    status: str = "firing"
    generator_url: str = ""
    fingerprint: str = ""

    @property
    def name(self) -> str:
        return self.labels.get("alertname", "")

    @property
    def summary(self) -> str:
        return self.annotations.get("summary", "")


@dataclass(frozen=True, slots=True)
class TimeSeries:
    """Labelled, time ordered samples returned by a range query.

    Sample values are kept exactly as the backend returned them (usually
    strings) and are converted to floats only when drawn.
    """

    labels: Mapping[str, str]
    samples: Sequence[Sample] = field(default_factory=tuple)

    @classmethod
    def from_matrix_entry(cls, entry: Mapping[str, Any]) -> "TimeSeries":
        """Build a series from one element of a Prometheus ``matrix`` result."""

        labels = {str(key): str(value) for key, value in (entry.get("metric") or {}).items()}
        samples = tuple((float(ts), value) for ts, value in entry.get("values") or [])
        return cls(labels=labels, samples=samples)

    @property
    def name(self) -> str:
        return self.labels.get(METRIC_NAME_LABEL, "")

    def label_text(self) -> str:
        """Canonical ``name{label="value", ...}`` rendering, labels sorted."""

        pairs = sorted(
            f'{key}="{_escape(value)}"'
            for key, value in self.labels.items()
            if key != METRIC_NAME_LABEL
        )
        if not pairs:
            return self.name or "{}"
        return f"{self.name}{{{', '.join(pairs)}}}"

    def sample_times(self) -> list[datetime]:
        return [datetime.fromtimestamp(ts, tz=timezone.utc) for ts, _ in self.samples]


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


__all__ = [
    "Alert",
    "AlertingCondition",
    "Direction",
    "METRIC_NAME_LABEL",
    "Sample",
    "TimeSeries",
]
