from __future__ import annotations

import math

import pytest

from alerting.errors import ParseError
from alerting.expression import decompose, extract_generator_expression
from alerting.models import AlertingCondition, Direction


def test_less_or_equal_maps_to_less() -> None:
    assert decompose("x <= 5") == [AlertingCondition("x", Direction.LESS, 5.0)]


def test_greater_maps_to_greater() -> None:
    assert decompose("x > 10") == [AlertingCondition("x", Direction.GREATER, 10.0)]


def test_and_decomposes_parenthesised_sides_in_order() -> None:
    conditions = decompose("(x > 1) and (y > 2)")

    assert conditions == [
        AlertingCondition("x", Direction.GREATER, 1.0),
        AlertingCondition("y", Direction.GREATER, 2.0),
    ]


@pytest.mark.parametrize(
    ("left", "right"),
    [
        ('rate(http_requests_total{job="api"}[5m]) > 0.5', 'up{job="api"} < 1'),
        ("sum by (instance) (node_load1) >= 4", "(node_memory_free_bytes <= 1e9)"),
        ("a > 1 and b > 2", "c < 3"),
    ],
)
def test_and_is_concatenation_of_sides(left: str, right: str) -> None:
    assert decompose(f"{left} and {right}") == decompose(left) + decompose(right)


def test_chained_and_keeps_left_to_right_order() -> None:
    formulas = [c.formula for c in decompose("a > 5 and b < 3 and c >= 1")]

    assert formulas == ["a", "b", "c"]


def test_redundant_parentheses_are_stripped() -> None:
    assert decompose("((cpu_usage >= 90))") == [
        AlertingCondition("cpu_usage", Direction.GREATER, 90.0)
    ]


def test_formula_keeps_full_left_hand_side() -> None:
    expression = 'sum by (job) (rate(errors_total{env="prod"}[5m])) / 2 > 10'

    (condition,) = decompose(expression)

    assert condition.formula == 'sum by (job) (rate(errors_total{env="prod"}[5m])) / 2'
    assert condition.threshold == 10.0


def test_unknown_comparison_defaults_to_greater() -> None:
    assert decompose("up == 0") == [AlertingCondition("up", Direction.GREATER, 0.0)]
    assert decompose("up != 1")[0].direction is Direction.GREATER


def test_bool_modifier_is_ignored() -> None:
    assert decompose("x > bool 5") == [AlertingCondition("x", Direction.GREATER, 5.0)]


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("x > -5", -5.0),
        ("x < +2.5", 2.5),
        ("x < 0x10", 16.0),
        ("x > 1e3", 1000.0),
        ("x > (3)", 3.0),
    ],
)
def test_threshold_literals(expression: str, expected: float) -> None:
    assert decompose(expression)[0].threshold == expected


def test_infinite_threshold() -> None:
    assert math.isinf(decompose("x < Inf")[0].threshold)


@pytest.mark.parametrize(
    "expression",
    [
        "up",
        'rate(http_requests_total{job="api"}[5m])',
        "a + 5",
        "x > y",
        "x > 1 or y > 2",
        "x > 1 unless y",
    ],
)
def test_unsupported_shapes_yield_nothing(expression: str) -> None:
    assert decompose(expression) == []


def test_unsupported_side_does_not_drop_sibling() -> None:
    assert decompose("x > 1 and y") == [AlertingCondition("x", Direction.GREATER, 1.0)]


@pytest.mark.parametrize("expression", ["", "x >", "rate(x[5m]", "x > 1 )", "x $ 1"])
def test_invalid_expressions_raise(expression: str) -> None:
    with pytest.raises(ParseError):
        decompose(expression)


def test_extract_generator_expression() -> None:
    url = "http://prometheus:9090/graph?g0.expr=up+%3D%3D+0&g0.tab=1"

    assert extract_generator_expression(url) == "up == 0"
    assert extract_generator_expression("http://prometheus:9090/graph") == ""
