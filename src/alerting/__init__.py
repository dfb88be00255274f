"""Alert decomposition, query windows and series selection."""

from .errors import (
    AlertGraphError,
    ConfigError,
    ConversionError,
    NotificationError,
    ParseError,
    QueryError,
    RenderError,
)
from .expression import decompose, extract_generator_expression
from .models import Alert, AlertingCondition, Direction, TimeSeries
from .selection import SelectionResult, select_series
from .window import QueryWindow, query_window

__all__ = [
    "Alert",
    "AlertGraphError",
    "AlertingCondition",
    "ConfigError",
    "ConversionError",
    "Direction",
    "NotificationError",
    "ParseError",
    "QueryError",
    "QueryWindow",
    "RenderError",
    "SelectionResult",
    "TimeSeries",
    "decompose",
    "extract_generator_expression",
    "query_window",
    "select_series",
]
