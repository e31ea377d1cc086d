"""gridcalc.calc - Formula evaluation engine for gridcalc grids."""

from gridcalc.calc._display import display_text, evaluate_cell, format_number, format_resolved
from gridcalc.calc._evaluator import FormulaEvaluator, evaluate
from gridcalc.calc._functions import FUNCTION_CATALOG, FunctionRegistry, is_supported
from gridcalc.calc._parser import parse_range, split_arguments
from gridcalc.calc._protocol import CellError, EvaluationError, GridSource, Resolved, Resolver
from gridcalc.calc._resolver import FORMULA_MARKER, CycleGuard, GridResolver

__all__ = [
    "CellError",
    "CycleGuard",
    "EvaluationError",
    "FORMULA_MARKER",
    "FUNCTION_CATALOG",
    "FormulaEvaluator",
    "FunctionRegistry",
    "GridResolver",
    "GridSource",
    "Resolved",
    "Resolver",
    "display_text",
    "evaluate",
    "evaluate_cell",
    "format_number",
    "format_resolved",
    "is_supported",
    "parse_range",
    "split_arguments",
]
