"""Display formatting: turn a cell's raw text into what the grid shows."""

from __future__ import annotations

import math

from gridcalc.calc._evaluator import evaluate
from gridcalc.calc._functions import FunctionRegistry
from gridcalc.calc._protocol import CellError, GridSource, Resolved
from gridcalc.calc._resolver import FORMULA_MARKER, CycleGuard, GridResolver, parse_literal

# Results this close to an integer are shown without a fraction.
INTEGER_TOLERANCE = 1e-9
MAX_FRACTION_DIGITS = 6


def format_number(value: float) -> str:
    """Format a successful result: ``3.0`` -> ``"3"``, ``1/3`` -> ``"0.333333"``."""
    rounded = math.copysign(math.floor(abs(value) + 0.5), value)
    if abs(value - rounded) < INTEGER_TOLERANCE:
        return str(int(rounded))
    text = f"{value:.{MAX_FRACTION_DIGITS}f}"
    return text.rstrip("0").rstrip(".")


def format_resolved(resolved: Resolved) -> str:
    """Error code text for a failure, formatted number otherwise."""
    if resolved.error is not None:
        return resolved.error.code
    if math.isnan(resolved.value) or math.isinf(resolved.value):
        return CellError.ERR.code
    return format_number(resolved.value)


def evaluate_cell(
    source: GridSource,
    row: int,
    col: int,
    functions: FunctionRegistry | None = None,
) -> Resolved:
    """Numeric value of the cell at ``(row, col)``.

    Formulas are evaluated with a fresh :class:`CycleGuard` that already
    holds the cell itself, so ``=A1`` inside A1 is a cycle.  Literal text
    is parsed as a number and an empty cell is 0.
    """
    text = source.get_text(row, col)
    if not text:
        return Resolved.success(0.0)
    if not text.startswith(FORMULA_MARKER):
        return parse_literal(text)
    guard = CycleGuard()
    resolver = GridResolver(source, guard, functions)
    with guard.enter((row, col)):
        return evaluate(text[len(FORMULA_MARKER):], resolver, resolver.functions)


def display_text(
    source: GridSource,
    row: int,
    col: int,
    functions: FunctionRegistry | None = None,
) -> str:
    """Text shown for the cell at ``(row, col)``.

    Literal text is shown verbatim; formulas show their result or an error
    code such as ``#REF``.
    """
    text = source.get_text(row, col)
    if not text.startswith(FORMULA_MARKER):
        return text
    return format_resolved(evaluate_cell(source, row, col, functions))
