"""Cell-name helpers."""

from __future__ import annotations

import re

# Any identifier-shaped name is accepted before the sheet's own validator runs.
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# Default validator: letters followed by digits, e.g. ``a1``, ``AB12``.
_DEFAULT_CELL_RE = re.compile(r"[A-Za-z]+[0-9]+")


def is_identifier(name: object) -> bool:
    """True if *name* is a string shaped like a cell name."""
    return isinstance(name, str) and _NAME_RE.fullmatch(name) is not None


def default_is_valid(name: str) -> bool:
    return _DEFAULT_CELL_RE.fullmatch(name) is not None


def default_normalize(name: str) -> str:
    return name


def format_number(value: float) -> str:
    """Shortest round-tripping text for *value*, without a trailing ``.0``."""
    text = repr(value)
    return text[:-2] if text.endswith(".0") else text
