"""Structural PromQL parser.

Only the shape of an expression matters for charting: which binary operators
sit at the top of the tree, and the exact source text of their operands.
Operands (selectors, function calls, aggregations, subqueries) are therefore
parsed as opaque, bracket-balanced spans, while binary operators are parsed
with PromQL's precedence and associativity rules.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, NoReturn, Union

from .errors import ParseError

COMPARISON_OPERATORS = frozenset({"==", "!=", "<=", "<", ">=", ">"})
SET_OPERATORS = frozenset({"and", "or", "unless"})

_PRECEDENCE = {
    "or": 1,
    "and": 2,
    "unless": 2,
    "==": 3,
    "!=": 3,
    "<=": 3,
    "<": 3,
    ">=": 3,
    ">": 3,
    "+": 4,
    "-": 4,
    "*": 5,
    "/": 5,
    "%": 5,
    "atan2": 5,
    "^": 6,
}
_RIGHT_ASSOCIATIVE = frozenset({"^"})
_KEYWORD_OPERATORS = frozenset({"and", "or", "unless", "atan2"})
_AGGREGATORS = frozenset(
    {
        "sum",
        "min",
        "max",
        "avg",
        "group",
        "stddev",
        "stdvar",
        "count",
        "count_values",
        "bottomk",
        "topk",
        "quantile",
        "limitk",
        "limit_ratio",
    }
)
_GROUPING = frozenset({"by", "without"})
_MATCHING = frozenset({"on", "ignoring"})
_GROUP_MODIFIERS = frozenset({"group_left", "group_right"})
_CLOSING = {"(": ")", "{": "}", "[": "]"}

_TOKEN_RE = re.compile(
    r"""
    (?P<skip>\s+|\#[^\n]*)
    |(?P<duration>(?:\d+(?:ms|[smhdwy]))+)
    |(?P<number>0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    |(?P<string>"(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*'|`[^`]*`)
    |(?P<ident>[a-zA-Z_:][a-zA-Z0-9_:]*)
    |(?P<op>==|!=|<=|>=|=~|!~|[-+*/%^<>=@])
    |(?P<punct>[(){}\[\],])
    """,
    re.VERBOSE,
)


@dataclass(frozen=True, slots=True)
class Token:
    kind: str
    text: str
    start: int
    end: int

    @property
    def keyword(self) -> str:
        return self.text.lower() if self.kind == "ident" else ""


@dataclass(frozen=True, slots=True)
class BinaryExpr:
    """``lhs <op> rhs`` with the operator normalised to lower case."""

    op: str
    lhs: "Expr"
    rhs: "Expr"
    return_bool: bool
    text: str
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class ParenExpr:
    expr: "Expr"
    text: str
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class OtherExpr:
    """Any operand: selector, literal, call, aggregation, subquery, unary."""

    text: str
    start: int
    end: int


Expr = Union[BinaryExpr, ParenExpr, OtherExpr]


def tokenize(source: str) -> List[Token]:
    tokens: List[Token] = []
    position = 0
    while position < len(source):
        match = _TOKEN_RE.match(source, position)
        if match is None:
            raise ParseError(
                f"unexpected character {source[position]!r} at position {position}",
                expression=source,
                position=position,
            )
        kind = match.lastgroup or ""
        if kind != "skip":
            tokens.append(Token(kind, match.group(), match.start(), match.end()))
        position = match.end()
    tokens.append(Token("eof", "", len(source), len(source)))
    return tokens


def parse_expression(source: str) -> Expr:
    """Parse ``source`` into a tree of binary operators over opaque operands."""

    return _Parser(source).parse()


def strip_parens(node: Expr) -> Expr:
    while isinstance(node, ParenExpr):
        node = node.expr
    return node


class _Parser:
    def __init__(self, source: str) -> None:
        self._source = source
        self._tokens = tokenize(source)
        self._index = 0

    def parse(self) -> Expr:
        if self._peek().kind == "eof":
            raise ParseError("empty expression", expression=self._source, position=0)
        node = self._expression(1)
        trailing = self._peek()
        if trailing.kind != "eof":
            self._fail(f"unexpected {trailing.text!r}", trailing)
        return node

    def _peek(self, offset: int = 0) -> Token:
        index = min(self._index + offset, len(self._tokens) - 1)
        return self._tokens[index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        if token.kind != "eof":
            self._index += 1
        return token

    def _fail(self, message: str, token: Token) -> NoReturn:
        raise ParseError(
            f"{message} at position {token.start}",
            expression=self._source,
            position=token.start,
        )

    def _binary_operator(self) -> str | None:
        token = self._peek()
        if token.kind == "op" and token.text in _PRECEDENCE:
            return token.text
        if token.keyword in _KEYWORD_OPERATORS:
            return token.keyword
        return None

    def _expression(self, min_precedence: int) -> Expr:
        lhs = self._unary()
        while True:
            op = self._binary_operator()
            if op is None or _PRECEDENCE[op] < min_precedence:
                return lhs
            self._advance()
            return_bool = False
            if op in COMPARISON_OPERATORS and self._peek().keyword == "bool":
                self._advance()
                return_bool = True
            self._vector_matching()
            precedence = _PRECEDENCE[op]
            next_min = precedence if op in _RIGHT_ASSOCIATIVE else precedence + 1
            rhs = self._expression(next_min)
            lhs = BinaryExpr(
                op=op,
                lhs=lhs,
                rhs=rhs,
                return_bool=return_bool,
                text=self._source[lhs.start : rhs.end],
                start=lhs.start,
                end=rhs.end,
            )

    def _vector_matching(self) -> None:
        if self._peek().keyword in _MATCHING:
            self._advance()
            self._group("(")
        if self._peek().keyword in _GROUP_MODIFIERS:
            self._advance()
            if self._peek().text == "(":
                self._group("(")

    def _unary(self) -> Expr:
        token = self._peek()
        if token.kind == "op" and token.text in {"+", "-"}:
            self._advance()
            operand = self._unary()
            return self._other(token.start, operand.end)
        return self._postfix(self._primary())

    def _primary(self) -> Expr:
        token = self._advance()
        if token.text == "(":
            inner = self._expression(1)
            closing = self._advance()
            if closing.text != ")":
                self._fail("expected ')'", closing)
            return ParenExpr(
                expr=inner,
                text=self._source[token.start : closing.end],
                start=token.start,
                end=closing.end,
            )
        if token.kind in {"number", "duration", "string"}:
            return self._other(token.start, token.end)
        if token.text == "{":
            self._index -= 1
            return self._other(token.start, self._group("{"))
        if token.kind == "ident":
            return self._identifier(token)
        self._fail(f"unexpected {token.text or 'end of input'!r}", token)

    def _identifier(self, token: Token) -> Expr:
        name = token.keyword
        if name in SET_OPERATORS or name in _MATCHING or name in _GROUP_MODIFIERS or name == "bool":
            self._fail(f"unexpected keyword {token.text!r}", token)
        end = token.end
        aggregation = name in _AGGREGATORS
        if aggregation and self._peek().keyword in _GROUPING:
            self._advance()
            end = self._group("(")
        if self._peek().text == "(":
            end = self._group("(")
            if aggregation and self._peek().keyword in _GROUPING:
                self._advance()
                end = self._group("(")
        elif self._peek().text == "{":
            end = self._group("{")
        return self._other(token.start, end)

    def _postfix(self, node: Expr) -> Expr:
        start, end = node.start, node.end
        while True:
            token = self._peek()
            if token.text == "[":
                end = self._group("[")
            elif token.keyword == "offset":
                self._advance()
                if self._peek().text == "-":
                    self._advance()
                value = self._advance()
                if value.kind not in {"duration", "number"}:
                    self._fail("expected duration after offset", value)
                end = value.end
            elif token.text == "@":
                self._advance()
                value = self._advance()
                if value.kind == "number":
                    end = value.end
                elif value.keyword in {"start", "end"} and self._peek().text == "(":
                    end = self._group("(")
                else:
                    self._fail("expected timestamp after '@'", value)
            else:
                break
        if (start, end) == (node.start, node.end):
            return node
        return self._other(start, end)

    def _group(self, opening: str) -> int:
        """Consume a balanced bracket group, returning the end offset."""

        first = self._advance()
        if first.text != opening:
            self._fail(f"expected {opening!r}", first)
        stack = [_CLOSING[opening]]
        while stack:
            token = self._advance()
            if token.kind == "eof":
                self._fail(f"unclosed {opening!r}", first)
            if token.text in _CLOSING:
                stack.append(_CLOSING[token.text])
            elif token.text in {")", "}", "]"}:
                if token.text != stack.pop():
                    self._fail(f"mismatched {token.text!r}", token)
                if not stack:
                    return token.end
        raise AssertionError("unreachable")

    def _other(self, start: int, end: int) -> OtherExpr:
        return OtherExpr(text=self._source[start:end], start=start, end=end)


__all__ = [
    "BinaryExpr",
    "COMPARISON_OPERATORS",
    "Expr",
    "OtherExpr",
    "ParenExpr",
    "SET_OPERATORS",
    "Token",
    "parse_expression",
    "strip_parens",
    "tokenize",
]
