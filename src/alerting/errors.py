"""Exception hierarchy shared by the alert graphing pipeline."""

from __future__ import annotations


class AlertGraphError(Exception):
    """Base class for every failure raised by alertgraph."""


class ConfigError(AlertGraphError, ValueError):
    """Raised when required configuration is missing or invalid."""


class ParseError(AlertGraphError):
    """Alerting expression could not be parsed."""

    def __init__(self, message: str, *, expression: str = "", position: int | None = None) -> None:
        super().__init__(message)
        self.expression = expression
        self.position = position


class QueryError(AlertGraphError):
    """Metric query failed or timed out."""


class RenderError(AlertGraphError):
    """Chart could not be drawn."""


class ConversionError(RenderError):
    """A sample value is not numeric."""


class NotificationError(AlertGraphError):
    """Chat notification delivery failed."""


__all__ = [
    "AlertGraphError",
    "ConfigError",
    "ConversionError",
    "NotificationError",
    "ParseError",
    "QueryError",
    "RenderError",
]
