"""Recalculation order: dependency-respecting walk of a dependent closure."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Iterator

from gridcalc._errors import CircularReferenceError


def _visit(
    start: str,
    dependents: Callable[[str], Iterable[str]],
    visited: set[str],
    order: deque[str],
) -> None:
    """Depth-first walk from *start*, prepending each cell once it is finished.

    Uses an explicit stack so a long formula chain does not run into the
    interpreter's recursion limit.
    """
    in_progress = {start}
    stack: list[tuple[str, Iterator[str]]] = [(start, iter(dependents(start)))]

    while stack:
        name, pending = stack[-1]
        for dep in pending:
            if dep in in_progress:
                raise CircularReferenceError(dep)
            if dep not in visited:
                in_progress.add(dep)
                stack.append((dep, iter(dependents(dep))))
                break
        else:
            stack.pop()
            in_progress.discard(name)
            visited.add(name)
            order.appendleft(name)


def cells_to_recalculate(
    start: str | Iterable[str],
    dependents: Callable[[str], Iterable[str]],
) -> list[str]:
    """Return *start* and everything that depends on it, in evaluation order.

    Each name appears once, and after every cell it depends on that is also
    in the result, so the start cells come before their dependents.  Cells
    are finished in post-order and prepended, which gives a topological
    order of the dependent closure.

    Raises :class:`CircularReferenceError` as soon as a dependent chain leads
    back to a cell that is still being visited.  Nothing is returned in that
    case, so no cell is recomputed.
    """
    starts = [start] if isinstance(start, str) else list(start)
    visited: set[str] = set()
    order: deque[str] = deque()
    for name in starts:
        if name not in visited:
            _visit(name, dependents, visited, order)
    return list(order)
