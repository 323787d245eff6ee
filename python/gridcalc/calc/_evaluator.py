"""Two-stack infix evaluator for ``+ - * /`` expressions with parentheses.

``evaluate`` is the standalone integer entry point.  ``reduce_tokens`` is the
reduction machine underneath it; :class:`~gridcalc.calc.Formula` runs the same
machine over floats.

There is no precedence table beyond two tiers: ``*``/``/`` are reduced as soon
as their right operand arrives, ``+``/``-`` are reduced when the next additive
operator, a ``)``, or the end of input is reached.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from typing import TypeVar

from gridcalc._errors import DivisionByZeroError, TokenError

N = TypeVar("N", int, float)

_ADDITIVE = frozenset("+-")
_MULTIPLICATIVE = frozenset("*/")

# Operators and parens are kept as tokens, whitespace is dropped.
_SPLIT_RE = re.compile(r"([()+\-*/])|\s+")
_VARIABLE_RE = re.compile(r"[A-Za-z]+[0-9]+")
_INTEGER_RE = re.compile(r"[0-9]+")


# ---------------------------------------------------------------------------
# Reduction machine
# ---------------------------------------------------------------------------


def _apply(
    operators: list[str],
    values: list[N],
    tier: frozenset[str],
    divide: Callable[[N, N], N],
) -> None:
    """Pop and apply the top operator if it belongs to *tier*."""
    if not operators or operators[-1] not in tier:
        return
    op = operators.pop()
    if len(values) < 2:
        raise TokenError(f"operator {op!r} is missing an operand")
    # Values were pushed left to right, so the right operand is on top.
    right = values.pop()
    left = values.pop()
    if op == "+":
        values.append(left + right)
    elif op == "-":
        values.append(left - right)
    elif op == "*":
        values.append(left * right)
    else:
        values.append(divide(left, right))


def reduce_tokens(
    tokens: Iterable[str],
    operand: Callable[[str], N],
    divide: Callable[[N, N], N],
) -> N:
    """Evaluate a token sequence in one left-to-right pass.

    *tokens* are ``(``, ``)``, the four operator characters, or operand text.
    Operand text is converted with *operand*; ``/`` is applied with *divide*.
    Both stacks are local to the call.
    """
    operators: list[str] = []
    values: list[N] = []

    for token in tokens:
        if token in _ADDITIVE:
            _apply(operators, values, _ADDITIVE, divide)
            operators.append(token)
        elif token in _MULTIPLICATIVE or token == "(":
            operators.append(token)
        elif token == ")":
            _apply(operators, values, _ADDITIVE, divide)
            if not operators or operators.pop() != "(":
                raise TokenError("unbalanced parentheses: unexpected ')'")
            # Lets an enclosing * or / consume the finished group: (a+b)*c
            _apply(operators, values, _MULTIPLICATIVE, divide)
        else:
            values.append(operand(token))
            _apply(operators, values, _MULTIPLICATIVE, divide)

    _apply(operators, values, _ADDITIVE, divide)

    if operators:
        if "(" in operators:
            raise TokenError("unbalanced parentheses: missing ')'")
        raise TokenError(f"operator {operators[-1]!r} is missing an operand")
    if not values:
        raise TokenError("expression has no value")
    if len(values) > 1:
        raise TokenError("more than one value remaining")
    return values[0]


# ---------------------------------------------------------------------------
# Integer entry point
# ---------------------------------------------------------------------------


def tokenize(expression: str) -> list[str]:
    """Split *expression* on operator and parenthesis boundaries."""
    return [frag for frag in _SPLIT_RE.split(expression) if frag]


def _truncating_divide(left: int, right: int) -> int:
    if right == 0:
        raise DivisionByZeroError("division by zero")
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


def evaluate(expression: str, resolve: Callable[[str], int]) -> int:
    """Evaluate an integer infix expression.

    Variables (letters followed by digits, e.g. ``b5``) are looked up with
    *resolve*; any exception it raises propagates unchanged.  Division
    truncates toward zero.

    Raises :class:`TokenError` for malformed input and
    :class:`DivisionByZeroError` for division by zero.

    >>> evaluate("w1 * w1 + (3 + 2) * 4 / 6 * ((b5))", lambda name: 6)
    54
    """

    def operand(token: str) -> int:
        if _INTEGER_RE.fullmatch(token):
            return int(token)
        if _VARIABLE_RE.fullmatch(token):
            return resolve(token)
        raise TokenError(f"invalid token: {token!r}")

    return reduce_tokens(tokenize(expression), operand, _truncating_divide)
