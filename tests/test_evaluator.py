"""Tests for numeric evaluation."""

import mpmath
import pytest

from presisi_pkg.evaluator import Evaluator, evaluate
from presisi_pkg.parser import parse
from presisi_pkg.precision import PrecisionContext
from presisi_pkg.symbolic import structurally_equal
from presisi_pkg.types import CalcArithmeticError, DomainError, InternalError

TOLERANCE = mpmath.mpf(2) ** -250


@pytest.fixture
def ctx():
    return PrecisionContext(256)


def run(text, context):
    evaluator = Evaluator(context)
    value = evaluator.evaluate(parse(text, context))
    return value, evaluator


class TestArithmetic:
    """Test basic arithmetic and operator semantics."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2+3*4", 14),
            ("2^3^2", 512),
            ("2(3+4)", 14),
            ("(2+3)*4", 20),
            ("8-3-2", 3),
            ("-(2+3)", -5),
            ("+5", 5),
            ("--3", 3),
            ("-2^2", 4),
            ("2^-1", 0.5),
            ("7/2", 3.5),
            ("1/3*3", 1),
            ("pow(2, 10)", 1024),
            ("(-2)^3", -8),
            ("0^0", 1),
        ],
    )
    def test_exact_results(self, ctx, text, expected):
        value, evaluator = run(text, ctx)
        assert value == expected
        assert evaluator.last_error is None

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("3 > 2", 1),
            ("2 >= 3", 0),
            ("1 == 1", 1),
            ("1 != 1", 0),
            ("2 <= 2", 1),
            ("2 < 3 < 1", 0),
            ("1/4 == 0.25", 1),
        ],
    )
    def test_comparisons(self, ctx, text, expected):
        value, _ = run(text, ctx)
        assert value == expected


class TestFunctions:
    """Test function evaluation against known values."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("sin(pi/2)", 1),
            ("cos(0)", 1),
            ("sqrt(16)", 4),
            ("abs(-7)", 7),
            ("floor(-2.5)", -3),
            ("ceil(-2.5)", -2),
            ("floor(2.7) + ceil(2.2)", 5),
            ("cosh(0)", 1),
            ("sinh(0)", 0),
            ("tanh(0)", 0),
            ("asinh(0)", 0),
            ("acosh(1)", 0),
            ("atanh(0)", 0),
            ("exp(0)", 1),
        ],
    )
    def test_exact_values(self, ctx, text, expected):
        value, _ = run(text, ctx)
        assert value == expected

    def test_square_root_squared(self, ctx):
        value, _ = run("sqrt(2)^2", ctx)
        assert abs(value - 2) < TOLERANCE

    def test_pow_function_matches_sqrt(self, ctx):
        a, _ = run("pow(2, 0.5)", ctx)
        b, _ = run("sqrt(2)", ctx)
        assert abs(a - b) < TOLERANCE

    def test_atan2(self, ctx):
        value, _ = run("atan2(1, 1)*4", ctx)
        assert abs(value - ctx.constant_value("pi")) < TOLERANCE

    def test_exp_and_log(self, ctx):
        value, _ = run("exp(1)", ctx)
        assert abs(value - ctx.constant_value("e")) < TOLERANCE
        value, _ = run("log10(1000)", ctx)
        assert abs(value - 3) < TOLERANCE
        value, _ = run("ln(e)", ctx)
        assert abs(value - 1) < TOLERANCE

    def test_constants(self, ctx):
        value, _ = run("gamma", ctx)
        assert abs(value - ctx.mpf("0.57721566490153286060651209008240243")) < 1e-34
        value, _ = run("ln2 + ln10", ctx)
        assert abs(value - ctx.constant_value("ln2") - ctx.constant_value("ln10")) < TOLERANCE


class TestZeroSnapping:
    """Test that tiny function results collapse to exact zero."""

    @pytest.mark.parametrize("text", ["sin(pi)", "cos(pi/2)", "tan(pi)", "sin(2pi)"])
    def test_snapped(self, ctx, text):
        value, _ = run(text, ctx)
        assert value == 0

    def test_genuinely_small_results_survive(self, ctx):
        value, _ = run("sin(1e-30)", ctx)
        assert value != 0
        assert abs(value - ctx.mpf("1e-30")) < ctx.mpf("1e-89")


class TestGuardBits:
    """Test that guard bits keep intermediate results accurate."""

    def test_cancellation_at_double_precision(self):
        ctx = PrecisionContext(53)
        value, _ = run("(1 + 1e-20) - 1", ctx)
        assert value != 0
        assert abs(value - ctx.mpf("1e-20")) / ctx.mpf("1e-20") < 1e-10

    def test_cancellation_at_default_precision(self, ctx):
        value, _ = run("(1 + 1e-70) - 1", ctx)
        assert abs(value - ctx.mpf("1e-70")) / ctx.mpf("1e-70") < 1e-40

    def test_result_is_rounded_to_target(self):
        ctx = PrecisionContext(64)
        value, _ = run("1/3", ctx)
        _sign, _man, _exp, bit_count = value._mpf_
        assert bit_count <= 64


class TestDomainErrors:
    """Test recorded domain violations."""

    @pytest.mark.parametrize(
        "text,prefix",
        [
            ("sqrt(-1)", "sqrt domain error"),
            ("log(0)", "log domain error"),
            ("log(-1)", "log domain error"),
            ("ln(0)", "log domain error"),
            ("log10(0)", "log10 domain error"),
            ("asin(2)", "asin domain error"),
            ("acos(-1.5)", "acos domain error"),
            ("acosh(0)", "acosh domain error"),
            ("atanh(1)", "atanh domain error"),
            ("(-8)^(1/3)", "pow domain error"),
            ("pow(-8, 0.5)", "pow domain error"),
        ],
    )
    def test_lenient_mode_yields_zero(self, ctx, text, prefix):
        value, evaluator = run(text, ctx)
        assert value == 0
        error = evaluator.last_error
        assert isinstance(error, DomainError)
        assert error.code == "DOMAIN_ERROR"
        assert error.message.startswith(prefix)

    @pytest.mark.parametrize("text", ["sqrt(-1)", "log(0)", "asin(2)", "(-8)^(1/3)"])
    def test_strict_mode_yields_nan(self, text):
        ctx = PrecisionContext(256, strict=True)
        value, evaluator = run(text, ctx)
        assert mpmath.isnan(value)
        assert isinstance(evaluator.last_error, DomainError)

    def test_nan_propagates_without_new_errors(self):
        ctx = PrecisionContext(256, strict=True)
        value, evaluator = run("sqrt(sqrt(-1))", ctx)
        assert mpmath.isnan(value)
        assert len(evaluator.errors) == 1

    def test_evaluation_continues(self, ctx):
        value, evaluator = run("1 + sqrt(-1) + 2", ctx)
        assert value == 3
        assert evaluator.last_error is not None

    def test_every_error_is_recorded(self, ctx):
        _, evaluator = run("sqrt(-1) + log(0)", ctx)
        assert len(evaluator.errors) == 2
        assert evaluator.last_error.message.startswith("log domain error")

    def test_boundaries_are_in_domain(self, ctx):
        for text in ("sqrt(0)", "asin(1)", "acos(-1)", "acosh(1)", "log(1)"):
            _, evaluator = run(text, ctx)
            assert evaluator.last_error is None, text


class TestDivisionByZero:
    """Test division by zero handling."""

    @pytest.mark.parametrize("strict", [False, True])
    def test_division_yields_zero(self, strict):
        ctx = PrecisionContext(256, strict=strict)
        value, evaluator = run("1/0", ctx)
        assert value == 0
        error = evaluator.last_error
        assert isinstance(error, CalcArithmeticError)
        assert isinstance(error, ArithmeticError)
        assert error.message == "Division by zero"
        assert error.code == "DIVISION_BY_ZERO"

    def test_zero_to_negative_power(self, ctx):
        value, evaluator = run("0^-1", ctx)
        assert value == 0
        assert isinstance(evaluator.last_error, CalcArithmeticError)

    def test_evaluation_continues(self, ctx):
        value, _ = run("1/0 + 5", ctx)
        assert value == 5


class TestEvaluatorState:
    """Test evaluator bookkeeping."""

    def test_errors_reset_between_evaluations(self, ctx):
        evaluator = Evaluator(ctx)
        evaluator.evaluate(parse("1/0", ctx))
        assert evaluator.last_error is not None
        evaluator.evaluate(parse("1", ctx))
        assert evaluator.last_error is None
        assert evaluator.errors == []

    def test_tree_is_not_modified(self, ctx):
        tree = parse("sin(pi) + 2*sqrt(2)", ctx)
        evaluate(tree, ctx)
        assert structurally_equal(tree, parse("sin(pi) + 2*sqrt(2)", ctx))

    def test_tree_from_other_precision(self, ctx):
        tree = parse("1/3", PrecisionContext(64))
        value = evaluate(tree, ctx)
        assert abs(value - ctx.mp.mpf(1) / 3) < TOLERANCE

    def test_unknown_node(self, ctx):
        with pytest.raises(InternalError):
            Evaluator(ctx).evaluate("not a node")
