"""Tests for failure modes and invalid input handling."""

import pytest

from presisi_pkg.api import evaluate, parse_and_evaluate, simplify_expression
from presisi_pkg.config import MAX_INPUT_LENGTH, MAX_TREE_DEPTH
from presisi_pkg.parser import parse
from presisi_pkg.precision import PrecisionContext
from presisi_pkg.types import LexError, ParseError


class TestInputValidationFailures:
    """Test input validation failure modes."""

    def test_empty_input(self):
        """Test empty input."""
        with pytest.raises(ParseError):
            parse("")

    def test_whitespace_only(self):
        """Test whitespace-only input."""
        with pytest.raises(ParseError):
            parse(" \t ")

    def test_too_long_input(self):
        """Test input exceeding maximum length."""
        with pytest.raises(LexError):
            parse("1+" * MAX_INPUT_LENGTH + "1")

    def test_unbalanced_parentheses(self):
        with pytest.raises(ParseError):
            parse("(1 + 2")
        with pytest.raises(ParseError):
            parse(")(")

    def test_dangling_operators(self):
        for text in ("1 +", "* 2", "2 ^", "1 ==", "(,)", "atan2(1,)"):
            with pytest.raises(ParseError):
                parse(text)

    def test_non_ascii_identifier(self):
        with pytest.raises(LexError):
            parse("π*2")

    def test_python_syntax_is_rejected(self):
        for text in ("2**3", "__import__('os')", "1 if 2 else 3", "[1, 2]"):
            with pytest.raises((LexError, ParseError)):
                parse(text)


class TestNumericFailures:
    """Test evaluation of degenerate numeric input."""

    def test_huge_exponent_literal(self):
        value, _, error = parse_and_evaluate("1e400 * 1e-400", context=PrecisionContext(128))
        assert error is None
        assert abs(value - 1) < 1e-30

    def test_overflowing_float_literal(self):
        result = evaluate("1e999", context=PrecisionContext(64))
        assert result.ok is True
        assert result.result.endswith("e+999")

    def test_nested_domain_errors(self):
        value, _, error = parse_and_evaluate("log(sqrt(-4))", context=PrecisionContext(64))
        assert value == 0
        assert error.startswith("log domain error")

    def test_minimum_precision(self):
        result = evaluate("1/3", precision_bits=2)
        assert result.ok is True
        assert result.precision == 2

    def test_maximum_precision(self):
        result = evaluate("1+1", precision_bits=10**6)
        assert result.ok is True
        assert result.precision == 8192
        assert result.result == "2"


class TestSimplifyFailures:
    def test_simplify_invalid_input(self):
        result = simplify_expression("sqrt(")
        assert result.ok is False
        assert result.error

    def test_simplify_keeps_unknown_shapes(self):
        result = simplify_expression("atan2(pi, e)")
        assert result.ok is True
        assert result.result == "atan2(pi, e)"


LONG_CHAINS = [
    "+".join(["1"] * 500),
    "*".join(["1"] * 500),
    " ".join(["2"] * 500),
    "+".join(["pi"] + [".5", ".7", ".9"] * 85),
]


class TestLongChains:
    """Flat operator chains that fit the input limit but not the tree height limit."""

    @pytest.mark.parametrize("text", LONG_CHAINS)
    def test_parse_and_evaluate_reports_error(self, text):
        value, is_integer, error = parse_and_evaluate(text, 256)
        assert value is None
        assert is_integer is False
        assert "too deeply nested" in error

    @pytest.mark.parametrize("text", LONG_CHAINS)
    def test_typed_results_carry_code(self, text):
        result = evaluate(text)
        assert result.ok is False
        assert result.code == "TOO_DEEP"
        simplified = simplify_expression(text)
        assert simplified.ok is False
        assert simplified.code == "TOO_DEEP"

    def test_longest_accepted_chain(self):
        ctx = PrecisionContext(256)
        text = "+".join(["pi"] + [".5", ".7", ".9"] * 49 + [".5", ".7"])
        assert text.count("+") == MAX_TREE_DEPTH - 1
        result = evaluate(text, context=ctx)
        assert result.ok is True
        assert result.result.startswith("107.24159265")
        simplified = simplify_expression(text, ctx)
        assert simplified.ok is True
        assert simplified.warning is None


class TestHugeLiterals:
    """Integral float literals beyond the interpreter's int-to-str digit limit."""

    def test_simplify_keeps_exponent_form(self):
        assert simplify_expression("1e5000").result == "1.0e+5000"
        assert simplify_expression("2e5000 + 1").result == "1 + 2.0e+5000"

    def test_enormous_exponent(self):
        result = simplify_expression("1e100000000")
        assert result.ok is True
        assert result.result == "1.0e+100000000"

    def test_evaluate(self):
        result = evaluate("1e5000", context=PrecisionContext(256))
        assert result.ok is True
        assert result.result == "1.0e+5000"

    def test_fixed_mode_falls_back_to_scientific(self):
        result = evaluate("1e5000", mode="fixed", context=PrecisionContext(256))
        assert result.result == "1.0e+5000"
