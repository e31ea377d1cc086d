"""Function library and registry for formula evaluation.

Every function receives the raw, unparsed argument strings of the call and
the :class:`~gridcalc.calc._evaluator.FormulaEvaluator` that is parsing it.
That lets each function decide what to evaluate and when: IF only touches
the selected branch, AND / OR stop at the first deciding argument, and
COUNT can skip arguments that fail.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Callable

from gridcalc.calc._parser import parse_range
from gridcalc.calc._protocol import CellError, EvaluationError

if TYPE_CHECKING:
    from gridcalc.calc._evaluator import FormulaEvaluator

logger = logging.getLogger(__name__)

# Magnitudes below this are treated as zero (division, truthiness).
EPSILON = 1e-12

FormulaFunction = Callable[[list[str], "FormulaEvaluator"], float]

# ---------------------------------------------------------------------------
# Catalog: builtin function names by category.
# ---------------------------------------------------------------------------

FUNCTION_CATALOG: dict[str, str] = {
    # Math (2)
    "SUM": "math",
    "ROUND": "math",
    # Statistical (4)
    "AVERAGE": "statistical",
    "MIN": "statistical",
    "MAX": "statistical",
    "COUNT": "statistical",
    # Logic (4)
    "IF": "logic",
    "AND": "logic",
    "OR": "logic",
    "NOT": "logic",
}


def is_supported(func_name: str) -> bool:
    """Check if a function name is one of the builtins."""
    return func_name.upper() in FUNCTION_CATALOG


def _check_arity(name: str, args: list[str], low: int, high: int) -> None:
    if not low <= len(args) <= high:
        raise EvaluationError(
            CellError.ERR, f"{name} takes {low}-{high} arguments, got {len(args)}",
        )


# ---------------------------------------------------------------------------
# Aggregates.  Arguments may be ranges; each cell is folded in turn.
# ---------------------------------------------------------------------------


def _builtin_sum(args: list[str], ev: FormulaEvaluator) -> float:
    total = 0.0
    for arg in args:
        for value in ev.argument_values(arg):
            total += value
    return total


def _builtin_average(args: list[str], ev: FormulaEvaluator) -> float:
    total = 0.0
    count = 0
    for arg in args:
        for value in ev.argument_values(arg):
            total += value
            count += 1
    if count == 0:
        return 0.0
    return total / count


def _builtin_min(args: list[str], ev: FormulaEvaluator) -> float:
    values = [v for arg in args for v in ev.argument_values(arg)]
    if not values:
        return 0.0
    return min(values)


def _builtin_max(args: list[str], ev: FormulaEvaluator) -> float:
    values = [v for arg in args for v in ev.argument_values(arg)]
    if not values:
        return 0.0
    return max(values)


def _builtin_count(args: list[str], ev: FormulaEvaluator) -> float:
    """COUNT - counts arguments and range cells that evaluate cleanly.

    A failing argument is skipped.  A range cell counts unless it fails with
    anything other than a cycle, and empty cells count as 0.
    """
    count = 0
    for arg in args:
        is_range = parse_range(arg) is not None
        for resolved in ev.resolve_argument(arg):
            if resolved.ok or (is_range and resolved.error == CellError.CYCLE):
                count += 1
            else:
                logger.debug("COUNT skipping %r: %s", arg, resolved.error)
    return float(count)


# ---------------------------------------------------------------------------
# Math
# ---------------------------------------------------------------------------


def _round_half_away(value: float) -> float:
    return math.copysign(math.floor(abs(value) + 0.5), value)


def _builtin_round(args: list[str], ev: FormulaEvaluator) -> float:
    _check_arity("ROUND", args, 1, 2)
    value = ev.evaluate_argument(args[0])
    digits = ev.evaluate_argument(args[1]) if len(args) > 1 else 0.0
    try:
        factor = 10.0 ** digits
        return _round_half_away(value * factor) / factor
    except (OverflowError, ValueError, ZeroDivisionError) as e:
        raise EvaluationError(CellError.ERR, f"ROUND: {e}") from e


# ---------------------------------------------------------------------------
# Logic
# ---------------------------------------------------------------------------


def _builtin_if(args: list[str], ev: FormulaEvaluator) -> float:
    _check_arity("IF", args, 2, 3)
    condition = ev.evaluate_argument(args[0])
    if not args[1]:
        raise EvaluationError(CellError.ERR, "IF: blank value-if-true")
    if abs(condition) > EPSILON:
        return ev.evaluate_argument(args[1])
    if len(args) > 2:
        return ev.evaluate_argument(args[2])
    return 0.0


def _builtin_and(args: list[str], ev: FormulaEvaluator) -> float:
    for arg in args:
        if abs(ev.evaluate_argument(arg)) < EPSILON:
            return 0.0
    return 1.0


def _builtin_or(args: list[str], ev: FormulaEvaluator) -> float:
    for arg in args:
        if abs(ev.evaluate_argument(arg)) > EPSILON:
            return 1.0
    return 0.0


def _builtin_not(args: list[str], ev: FormulaEvaluator) -> float:
    _check_arity("NOT", args, 1, 1)
    return 1.0 if abs(ev.evaluate_argument(args[0])) < EPSILON else 0.0


_BUILTINS: dict[str, FormulaFunction] = {
    "SUM": _builtin_sum,
    "AVERAGE": _builtin_average,
    "MIN": _builtin_min,
    "MAX": _builtin_max,
    "COUNT": _builtin_count,
    "ROUND": _builtin_round,
    "IF": _builtin_if,
    "AND": _builtin_and,
    "OR": _builtin_or,
    "NOT": _builtin_not,
}


class FunctionRegistry:
    """Registry of callable function implementations.

    Starts with builtins and can be extended with custom functions.  A
    custom function has the builtin signature ``func(raw_args, evaluator)``
    and returns a float or raises :class:`EvaluationError`.
    """

    def __init__(self) -> None:
        self._functions: dict[str, FormulaFunction] = dict(_BUILTINS)

    def register(self, name: str, func: FormulaFunction) -> None:
        if not name or not name.isascii() or not name.isalpha():
            raise ValueError(f"Function names must be letters only: {name!r}")
        self._functions[name.upper()] = func

    def get(self, name: str) -> FormulaFunction | None:
        return self._functions.get(name.upper())

    def has(self, name: str) -> bool:
        return name.upper() in self._functions

    @property
    def supported_functions(self) -> frozenset[str]:
        return frozenset(self._functions.keys())
