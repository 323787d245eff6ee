"""Cell contents as a closed set of kinds, plus the cached-value cell."""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from gridcalc._errors import EvaluationError
from gridcalc._utils import format_number
from gridcalc.calc._formula import Formula

Value = float | str | EvaluationError
Lookup = Callable[[str], float]

FORMULA_MARKER = "="


@dataclass(frozen=True)
class Number:
    value: float

    kind = "number"

    def plain(self) -> float:
        return self.value

    def to_text(self) -> str:
        return format_number(self.value)

    def dependees(self) -> tuple[str, ...]:
        return ()

    def compute(self, lookup: Lookup) -> Value:
        return self.value


@dataclass(frozen=True)
class Text:
    text: str

    kind = "text"

    def plain(self) -> str:
        return self.text

    def to_text(self) -> str:
        return self.text

    def dependees(self) -> tuple[str, ...]:
        return ()

    def compute(self, lookup: Lookup) -> Value:
        return self.text


@dataclass(frozen=True)
class FormulaContent:
    formula: Formula

    kind = "formula"

    def plain(self) -> Formula:
        return self.formula

    def to_text(self) -> str:
        return FORMULA_MARKER + str(self.formula)

    def dependees(self) -> tuple[str, ...]:
        return self.formula.variables

    def compute(self, lookup: Lookup) -> Value:
        return self.formula.evaluate(lookup)


@dataclass(frozen=True)
class Absent:
    """Content of a cell that is not stored. Reads as empty text."""

    kind = "absent"

    def plain(self) -> str:
        return ""

    def to_text(self) -> str:
        return ""

    def dependees(self) -> tuple[str, ...]:
        return ()

    def compute(self, lookup: Lookup) -> Value:
        return ""


ABSENT = Absent()

Content = Number | Text | FormulaContent | Absent


def parse_content(
    raw: str,
    normalize: Callable[[str], str],
    is_valid: Callable[[str], bool],
) -> Content:
    """Classify raw cell text.

    A finite number wins over everything else; a leading ``=`` makes a formula
    (raising :class:`~gridcalc.FormulaFormatError` if it does not parse); the
    empty string is :data:`ABSENT`; anything else is text.  Digit-group
    underscores such as ``1_000`` are not numeric syntax here, so that text
    stays text.
    """
    if "_" not in raw:
        try:
            number = float(raw)
        except ValueError:
            pass
        else:
            if math.isfinite(number):
                return Number(number)
    if raw.startswith(FORMULA_MARKER):
        return FormulaContent(Formula(raw[len(FORMULA_MARKER):], normalize, is_valid))
    if raw == "":
        return ABSENT
    return Text(raw)


class Cell:
    """A stored cell: its content and the value last computed from it."""

    __slots__ = ("content", "value")

    def __init__(self, content: Number | Text | FormulaContent, value: Value = "") -> None:
        self.content = content
        self.value = value

    def recalculate(self, lookup: Lookup) -> None:
        self.value = self.content.compute(lookup)

    def __repr__(self) -> str:
        return f"Cell({self.content.to_text()!r}, value={self.value!r})"
