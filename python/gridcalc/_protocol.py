"""Persistence boundary: what a Spreadsheet hands to storage and gets back."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class SavedSheet:
    """A spreadsheet as stored: a version tag plus its non-empty cells."""

    version: str
    cells: tuple[tuple[str, str], ...]  # (name, content string), formulas prefixed with "="


@runtime_checkable
class SheetStorage(Protocol):
    """Protocol for spreadsheet file formats."""

    def write(self, sheet: SavedSheet, filename: str | os.PathLike[str]) -> None:
        """Persist *sheet* to *filename*.

        Raises SpreadsheetReadWriteError on failure.
        """
        ...

    def read(self, filename: str | os.PathLike[str]) -> SavedSheet:
        """Load a sheet previously written by :meth:`write`.

        Raises SpreadsheetReadWriteError on failure.
        """
        ...
