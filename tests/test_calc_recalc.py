"""Tests for gridcalc.calc recalculation ordering and cycle detection."""

from __future__ import annotations

import pytest

from gridcalc._errors import CircularReferenceError
from gridcalc.calc._graph import DependencyGraph
from gridcalc.calc._recalc import cells_to_recalculate


def _graph(*edges: tuple[str, str]) -> DependencyGraph:
    g = DependencyGraph()
    for s, t in edges:
        g.add_dependency(s, t)
    return g


def _respects_dependencies(order: list[str], g: DependencyGraph) -> bool:
    pos = {name: i for i, name in enumerate(order)}
    return all(
        pos[s] < pos[name]
        for name in order
        for s in g.dependees(name)
        if s in pos
    )


class TestOrder:
    def test_isolated_cell(self) -> None:
        assert cells_to_recalculate("a1", DependencyGraph().dependents) == ["a1"]

    def test_start_comes_first(self) -> None:
        g = _graph(("a2", "a1"))
        assert cells_to_recalculate("a2", g.dependents) == ["a2", "a1"]

    def test_linear_chain(self) -> None:
        g = _graph(("a1", "b1"), ("b1", "c1"))
        assert cells_to_recalculate("a1", g.dependents) == ["a1", "b1", "c1"]

    def test_diamond(self) -> None:
        """a1 feeds b1 and c1, both feed d1."""
        g = _graph(("a1", "b1"), ("a1", "c1"), ("b1", "d1"), ("c1", "d1"))
        order = cells_to_recalculate("a1", g.dependents)
        assert sorted(order) == ["a1", "b1", "c1", "d1"]
        assert order[0] == "a1"
        assert order[-1] == "d1"
        assert _respects_dependencies(order, g)

    def test_skip_level_edge(self) -> None:
        """a1 -> b1 -> c1 plus a direct a1 -> c1."""
        g = _graph(("a1", "c1"), ("a1", "b1"), ("b1", "c1"))
        assert cells_to_recalculate("a1", g.dependents) == ["a1", "b1", "c1"]

    def test_only_dependent_closure(self) -> None:
        g = _graph(("a1", "b1"), ("z1", "y1"), ("x1", "b1"))
        assert cells_to_recalculate("a1", g.dependents) == ["a1", "b1"]

    def test_deterministic(self) -> None:
        g = _graph(("a1", "b1"), ("a1", "c1"), ("a1", "d1"), ("c1", "e1"))
        first = cells_to_recalculate("a1", g.dependents)
        assert all(cells_to_recalculate("a1", g.dependents) == first for _ in range(5))

    def test_multiple_starts(self) -> None:
        g = _graph(("a1", "c1"), ("b1", "c1"), ("c1", "d1"))
        order = cells_to_recalculate(["a1", "b1"], g.dependents)
        assert sorted(order) == ["a1", "b1", "c1", "d1"]
        assert order.count("c1") == 1
        assert _respects_dependencies(order, g)

    def test_long_chain_no_recursion_limit(self) -> None:
        g = DependencyGraph()
        for i in range(1, 5000):
            g.add_dependency(f"a{i}", f"a{i + 1}")
        order = cells_to_recalculate("a1", g.dependents)
        assert order == [f"a{i}" for i in range(1, 5001)]


class TestCycles:
    def test_self_loop(self) -> None:
        g = _graph(("a1", "a1"))
        with pytest.raises(CircularReferenceError) as exc_info:
            cells_to_recalculate("a1", g.dependents)
        assert exc_info.value.cell == "a1"

    def test_two_cycle(self) -> None:
        g = _graph(("a1", "b1"), ("b1", "a1"))
        with pytest.raises(CircularReferenceError, match="Circular reference"):
            cells_to_recalculate("a1", g.dependents)

    def test_cycle_downstream_of_start(self) -> None:
        g = _graph(("a1", "b1"), ("b1", "c1"), ("c1", "b1"))
        with pytest.raises(CircularReferenceError):
            cells_to_recalculate("a1", g.dependents)

    def test_cycle_through_multiple_starts(self) -> None:
        g = _graph(("a1", "b1"), ("b1", "c1"), ("c1", "a1"))
        with pytest.raises(CircularReferenceError):
            cells_to_recalculate(["x1", "c1"], g.dependents)

    def test_shared_dependent_is_not_a_cycle(self) -> None:
        g = _graph(("a1", "b1"), ("a1", "c1"), ("b1", "c1"))
        assert cells_to_recalculate("a1", g.dependents) == ["a1", "b1", "c1"]

    def test_graph_not_mutated(self) -> None:
        g = _graph(("a1", "b1"), ("b1", "a1"))
        with pytest.raises(CircularReferenceError):
            cells_to_recalculate("a1", g.dependents)
        assert len(g) == 2
