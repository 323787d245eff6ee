"""gridcalc - spreadsheet recalculation core.

Usage::

    from gridcalc import Spreadsheet, load_spreadsheet

    sheet = Spreadsheet()
    sheet.set_contents("a1", "1")
    sheet.set_contents("a2", "=a1+1")       # -> ["a2"]
    sheet.set_contents("a1", "5")           # -> ["a1", "a2"]
    print(sheet.get_value("a2"))            # 6.0
    sheet.save("book.xml")

    sheet = load_spreadsheet("book.xml")

    # Standalone integer expression evaluator
    from gridcalc.calc import evaluate
    evaluate("(x1 + 2) * 3", lambda name: 4)   # 18
"""

from __future__ import annotations

import os
from collections.abc import Callable

from gridcalc._errors import (
    CircularReferenceError,
    DivisionByZeroError,
    EvaluationError,
    ExpressionError,
    FormulaFormatError,
    NamingError,
    SpreadsheetError,
    SpreadsheetReadWriteError,
    TokenError,
)
from gridcalc._protocol import SavedSheet, SheetStorage
from gridcalc._spreadsheet import Spreadsheet
from gridcalc._storage import XmlStorage
from gridcalc.calc import Formula, evaluate

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CircularReferenceError",
    "DivisionByZeroError",
    "EvaluationError",
    "ExpressionError",
    "Formula",
    "FormulaFormatError",
    "NamingError",
    "SavedSheet",
    "SheetStorage",
    "Spreadsheet",
    "SpreadsheetError",
    "SpreadsheetReadWriteError",
    "TokenError",
    "XmlStorage",
    "evaluate",
    "load_spreadsheet",
]


def load_spreadsheet(
    filename: str | os.PathLike[str],
    is_valid: Callable[[str], bool] | None = None,
    normalize: Callable[[str], str] | None = None,
    version: str = "default",
    storage: SheetStorage | None = None,
) -> Spreadsheet:
    """Open a spreadsheet saved with :meth:`Spreadsheet.save`.

    Equivalent to :meth:`Spreadsheet.load`; see there for the parameters.
    """
    return Spreadsheet.load(
        filename, is_valid=is_valid, normalize=normalize, version=version, storage=storage,
    )
