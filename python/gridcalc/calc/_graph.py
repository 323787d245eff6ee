"""Dependency graph between cells."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


class DependencyGraph:
    """Directed graph of ``(dependee, dependent)`` pairs.

    An edge ``(s, t)`` means ``t``'s formula reads ``s``: ``s`` is a dependee
    of ``t`` and ``t`` is a dependent of ``s``.  Edges form a set, so adding
    the same pair twice stores it once.

    Names are interned into integer slots on first sight and adjacency is
    kept as insertion-ordered index sets, so query results come back in a
    deterministic order.  Slots are never reclaimed.
    """

    __slots__ = ("_index", "_names", "_dependents", "_dependees", "_size")

    def __init__(self) -> None:
        self._index: dict[str, int] = {}
        self._names: list[str] = []
        # slot -> ordered set of slots (dict keys, values unused)
        self._dependents: list[dict[int, None]] = []
        self._dependees: list[dict[int, None]] = []
        self._size = 0

    # ------------------------------------------------------------------
    # Interning
    # ------------------------------------------------------------------

    def _intern(self, name: str) -> int:
        slot = self._index.get(name)
        if slot is None:
            slot = len(self._names)
            self._index[name] = slot
            self._names.append(name)
            self._dependents.append({})
            self._dependees.append({})
        return slot

    def _names_of(self, slots: Iterable[int]) -> list[str]:
        names = self._names
        return [names[i] for i in slots]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        """Number of ordered pairs in the graph."""
        return self._size

    def num_dependees(self, node: str) -> int:
        slot = self._index.get(node)
        return 0 if slot is None else len(self._dependees[slot])

    def has_dependents(self, node: str) -> bool:
        slot = self._index.get(node)
        return slot is not None and bool(self._dependents[slot])

    def has_dependees(self, node: str) -> bool:
        slot = self._index.get(node)
        return slot is not None and bool(self._dependees[slot])

    def dependents(self, node: str) -> list[str]:
        """Cells whose formulas read *node*, in insertion order."""
        slot = self._index.get(node)
        return [] if slot is None else self._names_of(self._dependents[slot])

    def dependees(self, node: str) -> list[str]:
        """Cells that *node*'s formula reads, in insertion order."""
        slot = self._index.get(node)
        return [] if slot is None else self._names_of(self._dependees[slot])

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _link(self, s: int, t: int) -> None:
        if t not in self._dependents[s]:
            self._dependents[s][t] = None
            self._dependees[t][s] = None
            self._size += 1

    def _unlink(self, s: int, t: int) -> None:
        if t in self._dependents[s]:
            del self._dependents[s][t]
            del self._dependees[t][s]
            self._size -= 1

    def add_dependency(self, s: str, t: str) -> None:
        """Add the pair ``(s, t)``; no-op if already present."""
        self._link(self._intern(s), self._intern(t))

    def remove_dependency(self, s: str, t: str) -> None:
        """Remove the pair ``(s, t)``; no-op if absent."""
        si = self._index.get(s)
        ti = self._index.get(t)
        if si is not None and ti is not None:
            self._unlink(si, ti)

    def replace_dependents(self, node: str, new_dependents: Iterable[str]) -> None:
        """Replace every ``(node, r)`` with ``(node, t)`` for each *t* given.

        Pairs present both before and after keep their position in every
        ordered query result.
        """
        s = self._intern(node)
        wanted = dict.fromkeys(self._intern(name) for name in new_dependents)
        for t in list(self._dependents[s]):
            if t not in wanted:
                self._unlink(s, t)
        for t in wanted:
            self._link(s, t)

    def replace_dependees(self, node: str, new_dependees: Iterable[str]) -> None:
        """Replace every ``(r, node)`` with ``(s, node)`` for each *s* given.

        Pairs present both before and after keep their position in every
        ordered query result.
        """
        t = self._intern(node)
        wanted = dict.fromkeys(self._intern(name) for name in new_dependees)
        for s in list(self._dependees[t]):
            if s not in wanted:
                self._unlink(s, t)
        for s in wanted:
            self._link(s, t)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot_dependees(self, node: str) -> DependeeSnapshot:
        """Capture the pairs ``(r, node)``, including their ordering."""
        t = self._intern(node)
        dependees = dict(self._dependees[t])
        return DependeeSnapshot(
            slot=t,
            dependees=dependees,
            dependents={s: dict(self._dependents[s]) for s in dependees},
            size=self._size,
        )

    def restore_dependees(self, snapshot: DependeeSnapshot) -> None:
        """Put back the pairs captured by :meth:`snapshot_dependees`.

        Only pairs ending at the snapshotted node may have changed since the
        snapshot was taken; the graph is then exactly as it was, order
        included.
        """
        t = snapshot.slot
        for s in self._dependees[t]:
            if s not in snapshot.dependees:
                del self._dependents[s][t]
        for s, targets in snapshot.dependents.items():
            self._dependents[s] = dict(targets)
        self._dependees[t] = dict(snapshot.dependees)
        self._size = snapshot.size


@dataclass(frozen=True)
class DependeeSnapshot:
    """Saved dependee pairs of one node, from :meth:`DependencyGraph.snapshot_dependees`."""

    slot: int
    dependees: dict[int, None]
    dependents: dict[int, dict[int, None]]
    size: int
