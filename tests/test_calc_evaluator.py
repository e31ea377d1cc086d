"""Tests for gridcalc.calc FormulaEvaluator and evaluate()."""

from __future__ import annotations

import pytest

from gridcalc.calc._evaluator import FormulaEvaluator, evaluate
from gridcalc.calc._protocol import CellError, EvaluationError, Resolved


class DictResolver:
    """Resolver over a fixed name -> Resolved mapping; records every lookup."""

    def __init__(self, values: dict[str, float | CellError] | None = None) -> None:
        self.values = {k.upper(): v for k, v in (values or {}).items()}
        self.calls: list[str] = []

    def __call__(self, name: str) -> Resolved:
        self.calls.append(name)
        value = self.values.get(name.upper(), 0.0)
        if isinstance(value, CellError):
            return Resolved.failure(value)
        return Resolved.success(value)


def _eval(expr: str, values: dict[str, float | CellError] | None = None) -> Resolved:
    return evaluate(expr, DictResolver(values))


class TestArithmetic:
    @pytest.mark.parametrize(
        ("expr", "expected"),
        [
            ("1+2", 3.0),
            ("7-10", -3.0),
            ("6*7", 42.0),
            ("1/4", 0.25),
            ("2+3*4", 14.0),
            ("(2+3)*4", 20.0),
            ("10-4-3", 3.0),
            ("64/4/2", 8.0),
            ("-3", -3.0),
            ("+3", 3.0),
            ("--3", 3.0),
            ("2*-3", -6.0),
            ("-(1+2)*2", -6.0),
            ("  1 +\t2  ", 3.0),
            ("((((5))))", 5.0),
        ],
    )
    def test_expression(self, expr: str, expected: float) -> None:
        result = _eval(expr)
        assert result.ok
        assert result.value == pytest.approx(expected)

    def test_unary_binds_tighter_than_multiply(self) -> None:
        assert _eval("-2*3").value == -6.0


class TestNumbers:
    @pytest.mark.parametrize(
        ("expr", "expected"),
        [
            ("42", 42.0),
            ("3.5", 3.5),
            (".5", 0.5),
            ("5.", 5.0),
            ("1e3", 1000.0),
            ("2.5E-1", 0.25),
            ("1e+2", 100.0),
        ],
    )
    def test_literals(self, expr: str, expected: float) -> None:
        assert _eval(expr).value == pytest.approx(expected)

    @pytest.mark.parametrize("expr", [".", "1e", "1e+", "1.2.3", "1e2e3"])
    def test_malformed_numbers(self, expr: str) -> None:
        assert _eval(expr).error == CellError.ERR


class TestDivision:
    def test_divide_by_zero(self) -> None:
        assert _eval("1/0").error == CellError.DIV0

    def test_divide_by_tiny(self) -> None:
        assert _eval("1/0.0000000000001").error == CellError.DIV0

    def test_divide_by_small_but_allowed(self) -> None:
        result = _eval("1/0.0000000001")
        assert result.ok
        assert result.value == pytest.approx(1e10)

    def test_divide_by_empty_reference(self) -> None:
        assert _eval("5/B1").error == CellError.DIV0


class TestReferences:
    def test_reference_resolved(self) -> None:
        assert _eval("A1*2", {"A1": 21.0}).value == 42.0

    def test_lowercase_reference(self) -> None:
        resolver = DictResolver({"B2": 4.0})
        assert evaluate("b2+1", resolver).value == 5.0
        assert resolver.calls == ["b2"]

    def test_missing_reference_is_zero(self) -> None:
        assert _eval("Z99+1").value == 1.0

    def test_letters_without_digits_is_ref_error(self) -> None:
        assert _eval("ABC+1").error == CellError.REF

    def test_space_between_letters_and_digits_is_ref_error(self) -> None:
        assert _eval("A 1").error == CellError.REF

    def test_resolver_error_propagates(self) -> None:
        assert _eval("1+A1", {"A1": CellError.CYCLE}).error == CellError.CYCLE

    def test_first_error_wins(self) -> None:
        result = _eval("A1+B1", {"A1": CellError.REF, "B1": CellError.CYCLE})
        assert result.error == CellError.REF

    def test_evaluation_stops_at_first_error(self) -> None:
        resolver = DictResolver({"A1": CellError.ERR})
        evaluate("A1+B1", resolver)
        assert resolver.calls == ["A1"]


class TestSyntaxErrors:
    @pytest.mark.parametrize(
        "expr",
        ["", "   ", "1+", "(1+2", "1+2)", "1 2", "*3", "#REF", '"text"', "1+@"],
    )
    def test_malformed(self, expr: str) -> None:
        assert _eval(expr).error == CellError.ERR

    def test_unknown_function(self) -> None:
        assert _eval("ZZ()").error == CellError.ERR

    def test_function_case_insensitive(self) -> None:
        assert _eval("sum(1,2)").value == 3.0

    def test_space_before_call_paren(self) -> None:
        assert _eval("SUM (1,2)").value == 3.0


class TestNonFinite:
    def test_overflow_is_err(self) -> None:
        assert _eval("1e308*10").error == CellError.ERR

    def test_huge_literal_is_err(self) -> None:
        assert _eval("1e999").error == CellError.ERR

    def test_inf_minus_inf_is_err(self) -> None:
        assert _eval("1e308*10-1e308*10").error == CellError.ERR


class TestFormulaEvaluator:
    def test_evaluate_raises(self) -> None:
        ev = FormulaEvaluator("1/0", DictResolver())
        with pytest.raises(EvaluationError) as exc_info:
            ev.evaluate()
        assert exc_info.value.error == CellError.DIV0

    def test_trailing_input_raises(self) -> None:
        with pytest.raises(EvaluationError):
            FormulaEvaluator("1)", DictResolver()).evaluate()

    def test_resolve_argument_range(self) -> None:
        ev = FormulaEvaluator("", DictResolver({"A1": 1.0, "B2": 4.0}))
        values = [r.value for r in ev.resolve_argument("A1:B2")]
        assert values == [1.0, 0.0, 0.0, 4.0]

    def test_resolve_argument_expression_failure(self) -> None:
        ev = FormulaEvaluator("", DictResolver())
        assert list(ev.resolve_argument("1/0")) == [Resolved.failure(CellError.DIV0)]

    def test_resolve_argument_blank_raises(self) -> None:
        ev = FormulaEvaluator("", DictResolver())
        with pytest.raises(EvaluationError):
            list(ev.resolve_argument(""))

    def test_range_falls_back_to_expression(self) -> None:
        # "A1:" is not a range, and as an expression it has trailing input
        ev = FormulaEvaluator("", DictResolver())
        assert list(ev.resolve_argument("A1:")) == [Resolved.failure(CellError.ERR)]

    def test_deep_nesting_is_err(self) -> None:
        expr = "(" * 5000 + "1" + ")" * 5000
        assert _eval(expr).error == CellError.ERR
