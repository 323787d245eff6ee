"""Exception types and the per-cell error value."""

from __future__ import annotations

from dataclasses import dataclass


class SpreadsheetError(Exception):
    """Base class for failures raised by a Spreadsheet."""


class NamingError(SpreadsheetError, ValueError):
    """A cell or variable name is syntactically invalid or rejected by the validator."""

    def __init__(self, name: object) -> None:
        super().__init__(f"Invalid cell name: {name!r}")
        self.name = name


class CircularReferenceError(SpreadsheetError):
    """The update would make a cell depend on itself."""

    def __init__(self, cell: str) -> None:
        super().__init__(f"Circular reference detected involving: {cell}")
        self.cell = cell


class FormulaFormatError(SpreadsheetError, ValueError):
    """Formula text does not parse."""


class SpreadsheetReadWriteError(SpreadsheetError):
    """A spreadsheet could not be saved or loaded."""


# ---------------------------------------------------------------------------
# Standalone expression evaluator
# ---------------------------------------------------------------------------


class ExpressionError(ValueError):
    """Base class for errors from :func:`gridcalc.calc.evaluate`."""


class TokenError(ExpressionError):
    """Malformed expression: bad token, unbalanced parens, or leftover values."""


class DivisionByZeroError(ExpressionError, ZeroDivisionError):
    """Integer division by zero inside an expression."""


# ---------------------------------------------------------------------------
# Cell error value
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EvaluationError:
    """Value stored in a formula cell that could not be evaluated.

    Not an exception: it is cached like any other cell value so that one bad
    cell never aborts recalculation of the rest of the sheet.
    """

    reason: str

    def __str__(self) -> str:
        return f"#ERROR({self.reason})"
