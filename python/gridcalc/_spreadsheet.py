"""Spreadsheet: the cell store that keeps cached values consistent.

Every ``set_contents`` replaces one cell's content, rewires that cell's
dependee edges, and recomputes the cell and everything downstream of it in
dependency order.  An update that would close a cycle is undone before the
:class:`CircularReferenceError` reaches the caller.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable

from gridcalc._cell import ABSENT, Cell, Content, Value, parse_content
from gridcalc._errors import (
    CircularReferenceError,
    NamingError,
    SpreadsheetError,
    SpreadsheetReadWriteError,
)
from gridcalc._protocol import SavedSheet, SheetStorage
from gridcalc._storage import XmlStorage
from gridcalc._utils import default_is_valid, default_normalize, is_identifier
from gridcalc.calc._formula import Formula
from gridcalc.calc._graph import DependeeSnapshot, DependencyGraph
from gridcalc.calc._recalc import cells_to_recalculate

logger = logging.getLogger(__name__)


class Spreadsheet:
    """A single sheet of named cells.

    Usage::

        sheet = Spreadsheet()
        sheet.set_contents("a1", "4.5")
        sheet.set_contents("b1", "=a1*2")
        sheet.get_value("b1")    # 9.0
        sheet.set_contents("a1", "=b1")   # raises CircularReferenceError

    Parameters
    ----------
    is_valid : callable, optional
        Extra check applied to every normalized cell name, including names
        used inside formulas.  Defaults to letters followed by digits.
    normalize : callable, optional
        Maps a cell name to its canonical form.  Defaults to identity.
    version : str
        Version tag written to and checked against saved files.
    """

    def __init__(
        self,
        is_valid: Callable[[str], bool] | None = None,
        normalize: Callable[[str], str] | None = None,
        version: str = "default",
    ) -> None:
        self._is_valid = is_valid or default_is_valid
        self._normalize = normalize or default_normalize
        self._version = version
        self._cells: dict[str, Cell] = {}
        self._graph = DependencyGraph()
        self._changed = False

    @classmethod
    def load(
        cls,
        filename: str | os.PathLike[str],
        is_valid: Callable[[str], bool] | None = None,
        normalize: Callable[[str], str] | None = None,
        version: str = "default",
        storage: SheetStorage | None = None,
    ) -> Spreadsheet:
        """Open a saved spreadsheet.

        The file's version tag must equal *version*.  Each stored cell is
        replayed through :meth:`set_contents`, so names and formulas are
        validated against *is_valid*/*normalize* exactly as if typed in.
        Every failure surfaces as :class:`SpreadsheetReadWriteError`.
        """
        storage = storage or XmlStorage()
        saved = storage.read(filename)
        if saved.version != version:
            raise SpreadsheetReadWriteError(
                f"Version mismatch: file has {saved.version!r}, expected {version!r}"
            )
        sheet = cls(is_valid=is_valid, normalize=normalize, version=version)
        for name, contents in saved.cells:
            try:
                sheet.set_contents(name, contents)
            except SpreadsheetError as e:
                raise SpreadsheetReadWriteError(f"Cannot load cell {name!r}: {e}") from e
        sheet._changed = False  # noqa: SLF001
        logger.debug("Loaded %d cells from %s", len(saved.cells), os.fspath(filename))
        return sheet

    @staticmethod
    def saved_version(
        filename: str | os.PathLike[str],
        storage: SheetStorage | None = None,
    ) -> str:
        """Version tag of a saved spreadsheet, without loading its cells."""
        storage = storage or XmlStorage()
        return storage.read(filename).version

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def changed(self) -> bool:
        """True if modified since construction, the last load, or the last save."""
        return self._changed

    @property
    def version(self) -> str:
        return self._version

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _check_name(self, name: object) -> str:
        if not is_identifier(name):
            raise NamingError(name)
        normalized = self._normalize(name)  # type: ignore[arg-type]
        if not is_identifier(normalized) or not self._is_valid(normalized):
            raise NamingError(name)
        return normalized

    def _content(self, name: str) -> Content:
        cell = self._cells.get(name)
        return ABSENT if cell is None else cell.content

    def get_contents(self, name: str) -> float | str | Formula:
        """Content of a cell: a float, a non-empty str, a Formula, or ``""``."""
        return self._content(self._check_name(name)).plain()

    def get_content_string(self, name: str) -> str:
        """Content as it would be typed in: formulas carry their ``=`` marker."""
        return self._content(self._check_name(name)).to_text()

    def get_value(self, name: str) -> Value:
        """Cached value: a float, a str, an EvaluationError, or ``""``."""
        cell = self._cells.get(self._check_name(name))
        return "" if cell is None else cell.value

    def names_of_nonempty_cells(self) -> set[str]:
        return set(self._cells)

    def direct_dependents(self, name: str) -> list[str]:
        """Cells whose formulas reference *name* directly."""
        return self._graph.dependents(self._check_name(name))

    def cells_to_recalculate(self, names: str | Iterable[str]) -> list[str]:
        """Evaluation order for *names* and everything downstream of them."""
        if isinstance(names, str):
            names = [names]
        return cells_to_recalculate(
            [self._check_name(n) for n in names], self._graph.dependents,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_contents(self, name: str, content: str) -> list[str]:
        """Replace a cell's content and recompute everything it affects.

        *content* is classified as a number, a formula (leading ``=``), or
        text; empty text deletes the cell.  Returns the recomputed cells in
        the order they were evaluated, *name* first.

        Raises :class:`NamingError` for a bad name, :class:`FormulaFormatError`
        for formula text that does not parse, and
        :class:`CircularReferenceError` if the new content would create a
        cycle.  In every failure case the sheet is left exactly as it was.
        """
        name = self._check_name(name)
        if content is None:
            raise TypeError("content must be a str, not None")
        new_content = parse_content(content, self._normalize, self._is_valid)

        previous_cell = self._cells.get(name)
        previous_edges = self._graph.snapshot_dependees(name)

        if new_content is ABSENT:
            self._cells.pop(name, None)
        else:
            self._cells[name] = Cell(new_content)
        self._graph.replace_dependees(name, new_content.dependees())

        try:
            order = cells_to_recalculate(name, self._graph.dependents)
        except CircularReferenceError:
            self._restore(name, previous_cell, previous_edges)
            logger.debug("Rejected %s=%r: circular reference, rolled back", name, content)
            raise

        self._recalculate(order)
        self._changed = True
        logger.debug(
            "Set %s to %s content, %d cell(s) recalculated",
            name, new_content.kind, len(order),
        )
        return order

    def _restore(self, name: str, cell: Cell | None, edges: DependeeSnapshot) -> None:
        if cell is None:
            self._cells.pop(name, None)
        else:
            self._cells[name] = cell
        self._graph.restore_dependees(edges)

    def _lookup(self, name: str) -> float:
        cell = self._cells.get(name)
        if cell is None:
            raise KeyError(name)
        if not isinstance(cell.value, float):
            raise ValueError(f"{name} does not hold a number")
        return cell.value

    def _recalculate(self, order: Iterable[str]) -> None:
        for name in order:
            cell = self._cells.get(name)
            if cell is not None:
                cell.recalculate(self._lookup)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(
        self,
        filename: str | os.PathLike[str],
        storage: SheetStorage | None = None,
    ) -> None:
        """Write all non-empty cells and clear :attr:`changed`."""
        storage = storage or XmlStorage()
        saved = SavedSheet(
            version=self._version,
            cells=tuple((n, c.content.to_text()) for n, c in self._cells.items()),
        )
        storage.write(saved, filename)
        self._changed = False

    def __repr__(self) -> str:
        return f"<Spreadsheet version={self._version!r} cells={len(self._cells)}>"
