"""gridcalc.calc - expression evaluation, formulas, and dependency tracking."""

from gridcalc.calc._evaluator import evaluate, reduce_tokens, tokenize
from gridcalc.calc._formula import Formula
from gridcalc.calc._graph import DependencyGraph
from gridcalc.calc._recalc import cells_to_recalculate

__all__ = [
    "DependencyGraph",
    "Formula",
    "cells_to_recalculate",
    "evaluate",
    "reduce_tokens",
    "tokenize",
]
