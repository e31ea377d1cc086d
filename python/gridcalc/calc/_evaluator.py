"""FormulaEvaluator: single-pass recursive descent parser and evaluator.

The grammar, from loosest to tightest binding::

    expr     := addsub
    addsub   := muldiv ( ('+' | '-') muldiv )*
    muldiv   := factor ( ('*' | '/') factor )*
    factor   := ('+' | '-') factor | primary
    primary  := number | '(' expr ')' | reference | NAME '(' args ')'

Values are computed while parsing; there is no intermediate tree.  Cell
references are handed to a :class:`~gridcalc.calc._protocol.Resolver`,
which is the only way the evaluator reaches grid storage.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator

from gridcalc._utils import rowcol_to_a1
from gridcalc.calc._functions import EPSILON, FunctionRegistry
from gridcalc.calc._parser import parse_range, split_arguments
from gridcalc.calc._protocol import CellError, EvaluationError, Resolved, Resolver

logger = logging.getLogger(__name__)


def _is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


def _is_letter(ch: str) -> bool:
    return 'A' <= ch <= 'Z' or 'a' <= ch <= 'z'


class FormulaEvaluator:
    """Parses and evaluates one expression string.

    Usage::

        ev = FormulaEvaluator("SUM(A1:A3)*2", resolver)
        value = ev.evaluate()   # raises EvaluationError on failure

    Most callers want :func:`evaluate`, which never raises.
    """

    __slots__ = ("text", "pos", "resolver", "functions")

    def __init__(
        self,
        text: str,
        resolver: Resolver,
        functions: FunctionRegistry | None = None,
    ) -> None:
        self.text = text
        self.pos = 0
        self.resolver = resolver
        self.functions = functions if functions is not None else FunctionRegistry()

    def evaluate(self) -> float:
        """Evaluate the whole input; trailing characters are an error."""
        value = self._parse_expr()
        self._skip_spaces()
        if self.pos < len(self.text):
            raise EvaluationError(
                CellError.ERR, f"unexpected {self.text[self.pos:]!r} at {self.pos}",
            )
        return value

    # ------------------------------------------------------------------
    # Argument helpers used by the function library
    # ------------------------------------------------------------------

    def evaluate_argument(self, arg: str) -> float:
        """Evaluate a raw argument as a sub-expression with a fresh parser."""
        return FormulaEvaluator(arg, self.resolver, self.functions).evaluate()

    def resolve_argument(self, arg: str) -> Iterator[Resolved]:
        """Yield one :class:`Resolved` per value an argument contributes.

        A range argument yields every cell of the rectangle, row by row.
        Anything else is evaluated as a sub-expression and yields once.
        A blank argument raises instead of yielding a failure.
        """
        if not arg:
            raise EvaluationError(CellError.ERR, "blank argument")
        bounds = parse_range(arg)
        if bounds is not None:
            r_min, c_min, r_max, c_max = bounds
            for r in range(r_min, r_max + 1):
                for c in range(c_min, c_max + 1):
                    yield self.resolver(rowcol_to_a1(r, c))
            return
        try:
            yield Resolved.success(self.evaluate_argument(arg))
        except EvaluationError as e:
            yield Resolved.failure(e.error)

    def argument_values(self, arg: str) -> Iterator[float]:
        """Like :meth:`resolve_argument`, but the first failure is raised."""
        for resolved in self.resolve_argument(arg):
            yield resolved.unwrap()

    # ------------------------------------------------------------------
    # Grammar
    # ------------------------------------------------------------------

    def _skip_spaces(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos] in ' \t':
            self.pos += 1

    def _peek(self) -> str:
        self._skip_spaces()
        return self.text[self.pos] if self.pos < len(self.text) else ''

    def _parse_expr(self) -> float:
        return self._parse_addsub()

    def _parse_addsub(self) -> float:
        value = self._parse_muldiv()
        while True:
            op = self._peek()
            if op not in ('+', '-'):
                break
            self.pos += 1
            right = self._parse_muldiv()
            value = value + right if op == '+' else value - right
        return value

    def _parse_muldiv(self) -> float:
        value = self._parse_factor()
        while True:
            op = self._peek()
            if op not in ('*', '/'):
                break
            self.pos += 1
            right = self._parse_factor()
            if op == '*':
                value = value * right
            elif abs(right) < EPSILON:
                raise EvaluationError(CellError.DIV0, f"divisor {right!r}")
            else:
                value = value / right
        return value

    def _parse_factor(self) -> float:
        ch = self._peek()
        if ch == '+':
            self.pos += 1
            return self._parse_factor()
        if ch == '-':
            self.pos += 1
            return -self._parse_factor()
        return self._parse_primary()

    def _parse_primary(self) -> float:
        ch = self._peek()
        if not ch:
            raise EvaluationError(CellError.ERR, "unexpected end of formula")
        if ch == '(':
            self.pos += 1
            value = self._parse_expr()
            if self._peek() != ')':
                raise EvaluationError(CellError.ERR, "missing ')'")
            self.pos += 1
            return value
        if _is_digit(ch) or ch == '.':
            return self._parse_number()
        if _is_letter(ch):
            return self._parse_identifier()
        raise EvaluationError(CellError.ERR, f"unexpected {ch!r} at {self.pos}")

    def _parse_number(self) -> float:
        text = self.text
        start = j = self.pos
        seen_dot = seen_exp = False
        while j < len(text):
            ch = text[j]
            if _is_digit(ch):
                j += 1
            elif ch == '.' and not (seen_dot or seen_exp):
                seen_dot = True
                j += 1
            elif ch in 'eE' and not seen_exp:
                seen_exp = True
                j += 1
                if j < len(text) and text[j] in '+-':
                    j += 1
            else:
                break
        self.pos = j
        try:
            return float(text[start:j])
        except ValueError:
            raise EvaluationError(CellError.ERR, f"bad number {text[start:j]!r}") from None

    def _parse_identifier(self) -> float:
        text = self.text
        start = j = self.pos
        while j < len(text) and _is_letter(text[j]):
            j += 1
        self.pos = j

        # NAME(...) is a function call
        if self._peek() == '(':
            args, self.pos = split_arguments(text, self.pos + 1)
            return self._call(text[start:j].upper(), args)

        # Letters directly followed by digits form a cell reference
        k = j
        while k < len(text) and _is_digit(text[k]):
            k += 1
        self.pos = k
        if k == j:
            raise EvaluationError(CellError.REF, f"bad reference {text[start:j]!r}")
        return self.resolver(text[start:k]).unwrap()

    def _call(self, name: str, args: list[str]) -> float:
        func = self.functions.get(name)
        if func is None:
            logger.debug("Unsupported function: %s", name)
            raise EvaluationError(CellError.ERR, f"unknown function {name}")
        return func(args, self)


def evaluate(
    expr: str,
    resolver: Resolver,
    functions: FunctionRegistry | None = None,
) -> Resolved:
    """Evaluate *expr* (without the leading ``=``) and never raise.

    Errors become a failed :class:`Resolved`; a NaN or infinite result is
    reported as ``#ERR``.
    """
    try:
        value = FormulaEvaluator(expr, resolver, functions).evaluate()
    except EvaluationError as e:
        logger.debug("Cannot evaluate %r: %s", expr, e)
        return Resolved.failure(e.error)
    except RecursionError:
        logger.debug("Cannot evaluate %r: nesting too deep", expr)
        return Resolved.failure(CellError.ERR)
    if math.isnan(value) or math.isinf(value):
        return Resolved.failure(CellError.ERR)
    return Resolved.success(value)
