"""Recover threshold conditions from a boolean alerting expression."""

from __future__ import annotations

import logging
import re
from typing import List
from urllib.parse import parse_qs, urlsplit

from .models import AlertingCondition, Direction
from .promql import (
    COMPARISON_OPERATORS,
    BinaryExpr,
    Expr,
    OtherExpr,
    ParenExpr,
    parse_expression,
    strip_parens,
)

_LOGGER = logging.getLogger("alertgraph.expression")
GENERATOR_EXPRESSION_PARAM = "g0.expr"
_DECIMAL = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

_DIRECTIONS = {
    "<": Direction.LESS,
    "<=": Direction.LESS,
    ">": Direction.GREATER,
    ">=": Direction.GREATER,
}


def decompose(expression: str) -> List[AlertingCondition]:
    """Split ``expression`` into one condition per charted comparison.

    ``A and B`` is decomposed into the conditions of ``A`` followed by those of
    ``B``. A comparison against a numeric literal becomes one condition; every
    other shape yields nothing. Raises :class:`ParseError` when the expression
    is not valid PromQL.
    """

    return _decompose(parse_expression(expression))


def _decompose(node: Expr) -> List[AlertingCondition]:
    node = strip_parens(node)
    match node:
        case BinaryExpr(op="and", lhs=lhs, rhs=rhs):
            _LOGGER.debug("logical condition, decomposing sides separately: %s", node.text)
            return [*_decompose(lhs), *_decompose(rhs)]
        case BinaryExpr(op=op) if op in COMPARISON_OPERATORS:
            return _comparison(node)
        case BinaryExpr(op=op):
            _LOGGER.warning("unsupported operator %r, no chart for: %s", op, node.text)
            return []
        case OtherExpr() | ParenExpr():
            _LOGGER.info("non binary expression, no chart for: %s", node.text)
            return []
    return []


def _comparison(node: BinaryExpr) -> List[AlertingCondition]:
    threshold = parse_number_literal(node.rhs)
    if threshold is None:
        _LOGGER.warning("threshold is not a numeric literal, no chart for: %s", node.text)
        return []
    direction = _DIRECTIONS.get(node.op)
    if direction is None:
        # ==, != have no breached side; charted as an upper bound.
        _LOGGER.warning("unexpected comparison operator %r, assuming '>'", node.op)
        direction = Direction.GREATER
    formula = node.lhs.text.strip()
    return [AlertingCondition(formula=formula, direction=direction, threshold=threshold)]


def parse_number_literal(node: Expr) -> float | None:
    """Return the value of a (signed) PromQL number literal, else ``None``."""

    text = "".join(strip_parens(node).text.split())
    sign = 1.0
    if text[:1] in {"+", "-"}:
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    lowered = text.lower()
    if lowered in {"inf", "nan"}:
        return sign * float(lowered)
    if lowered.startswith("0x"):
        try:
            return sign * int(lowered, 16)
        except ValueError:
            return None
    if _DECIMAL.fullmatch(text):
        return sign * float(text)
    return None


def extract_generator_expression(generator_url: str) -> str:
    """Return the alerting query embedded in a Prometheus graph link, or ``""``."""

    values = parse_qs(urlsplit(generator_url).query).get(GENERATOR_EXPRESSION_PARAM)
    return values[0] if values else ""


__all__ = ["decompose", "extract_generator_expression", "parse_number_literal"]
