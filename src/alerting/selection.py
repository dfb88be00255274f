"""Pick the series that triggered an alert out of a range query result."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence, Tuple

from .models import TimeSeries

_LOGGER = logging.getLogger("alertgraph.selection")


@dataclass(frozen=True, slots=True)
class SelectionResult:
    series: Tuple[TimeSeries, ...]
    matched: bool


def labels_agree(candidate: Mapping[str, str], alert_labels: Mapping[str, str]) -> bool:
    """True when no label shared by both sides has a different value."""

    for label, value in candidate.items():
        expected = alert_labels.get(label)
        if expected is not None and expected != value:
            return False
    return True


def select_series(
    series: Sequence[TimeSeries],
    alert_labels: Mapping[str, str],
) -> SelectionResult:
    """Return the first series consistent with ``alert_labels``, else all of them."""

    for candidate in series:
        _LOGGER.debug("metric fetched: %s", candidate.label_text())
        if labels_agree(candidate.labels, alert_labels):
            _LOGGER.info("best match found: %s", candidate.label_text())
            return SelectionResult(series=(candidate,), matched=True)
    _LOGGER.info("best match not found, using entire dataset. labels to search: %s", dict(alert_labels))
    return SelectionResult(series=tuple(series), matched=False)


__all__ = ["SelectionResult", "labels_agree", "select_series"]
