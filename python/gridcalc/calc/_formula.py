"""Formula parser: regex tokenizer, syntax rules, and double-valued evaluation."""

from __future__ import annotations

import logging
import math
import operator
import re
from collections.abc import Callable

from gridcalc._errors import EvaluationError, FormulaFormatError
from gridcalc._utils import format_number
from gridcalc.calc._evaluator import reduce_tokens

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Token patterns
# ---------------------------------------------------------------------------

_TOKEN_RE = re.compile(
    r"""
    (?P<lparen>\()
    |(?P<rparen>\))
    |(?P<op>[+\-*/])
    |(?P<var>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<num>(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?)
    |(?P<space>\s+)
    """,
    re.VERBOSE,
)

_VARIABLE_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Kinds allowed to open an operand slot / to follow a completed operand.
_OPERAND_START = frozenset({"num", "var", "lparen"})
_OPERAND_END = frozenset({"num", "var", "rparen"})
_AFTER_OPERAND = frozenset({"op", "rparen"})


def _identity(name: str) -> str:
    return name


def _always_valid(name: str) -> bool:
    return True


# ---------------------------------------------------------------------------
# Tokenizing and syntax checking
# ---------------------------------------------------------------------------


def _scan(text: str) -> list[tuple[str, str]]:
    """Split formula text into ``(kind, text)`` pairs, dropping whitespace."""
    tokens: list[tuple[str, str]] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None:
            raise FormulaFormatError(f"Invalid character {text[pos]!r} at position {pos}")
        kind = m.lastgroup
        if kind != "space":
            tokens.append((kind, m.group()))
        pos = m.end()
    return tokens


def _check_syntax(tokens: list[tuple[str, str]]) -> None:
    if not tokens:
        raise FormulaFormatError("Formula is empty")

    if tokens[0][0] not in _OPERAND_START:
        raise FormulaFormatError(f"Formula cannot start with {tokens[0][1]!r}")
    if tokens[-1][0] not in _OPERAND_END:
        raise FormulaFormatError(f"Formula cannot end with {tokens[-1][1]!r}")

    depth = 0
    previous: str | None = None
    for kind, text in tokens:
        if kind == "lparen":
            depth += 1
        elif kind == "rparen":
            depth -= 1
            if depth < 0:
                raise FormulaFormatError("Unbalanced parentheses: unexpected ')'")
        if previous in ("lparen", "op") and kind not in _OPERAND_START:
            raise FormulaFormatError(f"Expected a number, variable or '(' before {text!r}")
        if previous in _OPERAND_END and kind not in _AFTER_OPERAND:
            raise FormulaFormatError(f"Expected an operator or ')' before {text!r}")
        previous = kind

    if depth != 0:
        raise FormulaFormatError("Unbalanced parentheses: missing ')'")


class _UndefinedVariable(Exception):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name


# ---------------------------------------------------------------------------
# Formula
# ---------------------------------------------------------------------------


class Formula:
    """A parsed formula: the text after the ``=`` marker of a formula cell.

    Variables are normalized with *normalize* and must then pass *is_valid*;
    otherwise :class:`FormulaFormatError` is raised, as it is for any syntax
    error.  Two formulas are equal when their canonical text is equal, so
    ``Formula("a1 + 2.0") == Formula("a1+2")``.
    """

    __slots__ = ("_tokens", "_variables", "_text")

    def __init__(
        self,
        text: str,
        normalize: Callable[[str], str] | None = None,
        is_valid: Callable[[str], bool] | None = None,
    ) -> None:
        normalize = normalize or _identity
        is_valid = is_valid or _always_valid

        scanned = _scan(text)
        _check_syntax(scanned)

        tokens: list[str] = []
        variables: dict[str, None] = {}
        for kind, tok in scanned:
            if kind == "var":
                name = normalize(tok)
                if not _VARIABLE_RE.fullmatch(name) or not is_valid(name):
                    raise FormulaFormatError(f"Invalid variable: {tok!r}")
                variables[name] = None
                tokens.append(name)
            elif kind == "num":
                value = float(tok)
                if not math.isfinite(value):
                    raise FormulaFormatError(f"Number out of range: {tok!r}")
                tokens.append(format_number(value))
            else:
                tokens.append(tok)

        self._tokens = tuple(tokens)
        self._variables = tuple(variables)
        self._text = "".join(tokens)

    @property
    def tokens(self) -> tuple[str, ...]:
        """Canonical token sequence in source order."""
        return self._tokens

    @property
    def variables(self) -> tuple[str, ...]:
        """Distinct normalized variable names, in order of first occurrence."""
        return self._variables

    def evaluate(self, lookup: Callable[[str], float]) -> float | EvaluationError:
        """Evaluate using *lookup* for variable values.

        Never raises for evaluation problems.  Division by zero, or a lookup
        that raises ``LookupError``/``ValueError``/``TypeError``, yields an
        :class:`EvaluationError` instead.
        """

        def operand(token: str) -> float:
            if not _VARIABLE_RE.fullmatch(token):
                return float(token)
            try:
                return lookup(token)
            except (LookupError, ValueError, TypeError) as exc:
                raise _UndefinedVariable(token) from exc

        try:
            return reduce_tokens(self._tokens, operand, operator.truediv)
        except ZeroDivisionError:
            logger.debug("Division by zero in formula %s", self._text)
            return EvaluationError("division by zero")
        except _UndefinedVariable as exc:
            logger.debug("Undefined variable %s in formula %s", exc.name, self._text)
            return EvaluationError(f"undefined variable {exc.name}")

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"Formula({self._text!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Formula):
            return NotImplemented
        return self._text == other._text

    def __hash__(self) -> int:
        return hash(self._text)
