"""Tests for precision contexts and the constants cache."""

import math
import unittest

import mpmath
import pytest

from presisi_pkg import precision
from presisi_pkg.config import DEFAULT_PRECISION, GUARD_BITS, MAX_PRECISION, MIN_PRECISION
from presisi_pkg.precision import PrecisionContext, clamp_precision, resolve_rounding


def reference(name, bits):
    """Constant from mpmath's global context at ``bits`` precision."""
    with mpmath.workprec(bits):
        return {
            "pi": +mpmath.pi,
            "e": +mpmath.e,
            "ln2": +mpmath.ln2,
            "ln10": +mpmath.ln10,
            "gamma": +mpmath.euler,
            "sqrt2": mpmath.sqrt(2),
        }[name]


class TestPrecisionContext(unittest.TestCase):
    """Test precision settings of a context."""

    def test_defaults(self):
        ctx = PrecisionContext()
        self.assertEqual(ctx.precision, DEFAULT_PRECISION)
        self.assertEqual(ctx.working_precision, DEFAULT_PRECISION + GUARD_BITS)
        self.assertEqual(ctx.mp.prec, ctx.working_precision)

    def test_clamping(self):
        self.assertEqual(PrecisionContext(1).precision, MIN_PRECISION)
        self.assertEqual(PrecisionContext(10**6).precision, MAX_PRECISION)
        ctx = PrecisionContext(128)
        ctx.precision = 0
        self.assertEqual(ctx.precision, MIN_PRECISION)
        self.assertEqual(clamp_precision(-5), MIN_PRECISION)
        self.assertEqual(clamp_precision(300), 300)

    def test_setting_precision_updates_working_precision(self):
        ctx = PrecisionContext(128)
        ctx.precision = 512
        self.assertEqual(ctx.mp.prec, 512 + GUARD_BITS)

    def test_contexts_are_independent(self):
        a = PrecisionContext(64)
        b = PrecisionContext(1024)
        self.assertEqual(a.mp.prec, 64 + GUARD_BITS)
        self.assertEqual(b.mp.prec, 1024 + GUARD_BITS)

    def test_copy(self):
        ctx = PrecisionContext(256, rounding="down", strict=True)
        ctx.constant("pi")
        other = ctx.copy(512)
        self.assertEqual(other.precision, 512)
        self.assertEqual(other.rounding, "f")
        self.assertTrue(other.strict)
        self.assertEqual(ctx.precision, 256)
        self.assertFalse(other.is_cached("pi"))

    def test_decimal_digits(self):
        self.assertEqual(PrecisionContext(256).decimal_digits(), 77)
        self.assertEqual(PrecisionContext(53).decimal_digits(), 15)
        self.assertEqual(PrecisionContext(2).decimal_digits(), 1)

    def test_snap_threshold(self):
        ctx = PrecisionContext(100)
        self.assertEqual(ctx.snap_threshold(), mpmath.mpf(2) ** -110)

    def test_repr(self):
        self.assertEqual(
            repr(PrecisionContext(64)),
            "PrecisionContext(precision=64, rounding='nearest', strict=False)",
        )


class TestConstants(unittest.TestCase):
    """Test constant computation and caching."""

    def test_constants_match_mpmath(self):
        ctx = PrecisionContext(256)
        for name in ("pi", "e", "ln2", "ln10", "gamma", "sqrt2"):
            diff = abs(ctx.constant_value(name) - reference(name, 512))
            self.assertLess(diff, mpmath.mpf(2) ** -250, name)

    def test_constant_is_rounded_to_target(self):
        ctx = PrecisionContext(64)
        value = ctx.constant_value("pi")
        _sign, _man, _exp, bit_count = value._mpf_
        self.assertLessEqual(bit_count, 64)
        self.assertGreater(bit_count, 53)
        self.assertAlmostEqual(float(value), math.pi)

    def test_cache(self):
        ctx = PrecisionContext(128)
        self.assertFalse(ctx.is_cached("e"))
        first = ctx.constant("e")
        self.assertTrue(ctx.is_cached("e"))
        self.assertIs(ctx.constant("e"), first)

    def test_precision_change_invalidates_cache(self):
        ctx = PrecisionContext(128)
        ctx.constant("pi")
        ctx.precision = 512
        self.assertFalse(ctx.is_cached("pi"))

    def test_same_precision_still_invalidates(self):
        ctx = PrecisionContext(128)
        ctx.constant("pi")
        ctx.precision = 128
        self.assertFalse(ctx.is_cached("pi"))

    def test_clear_cache(self):
        ctx = PrecisionContext(128)
        ctx.constant("gamma")
        ctx.clear_cache()
        self.assertFalse(ctx.is_cached("gamma"))

    def test_unknown_constant(self):
        with self.assertRaises(KeyError):
            PrecisionContext(64).constant("tau")

    def test_precision_monotonicity(self):
        low = PrecisionContext(128).constant_value("pi")
        high = PrecisionContext(512).constant_value("pi")
        self.assertLessEqual(abs(low - high), mpmath.mpf(2) ** -126)


class TestRounding:
    """Test rounding mode handling."""

    @pytest.mark.parametrize(
        "name,code",
        [("nearest", "n"), ("down", "f"), ("up", "c"), ("toward_zero", "d"), ("away", "u")],
    )
    def test_named_modes(self, name, code):
        assert resolve_rounding(name) == code
        assert resolve_rounding(name.upper()) == code

    def test_raw_code(self):
        assert resolve_rounding("d") == "d"

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            resolve_rounding("sideways")
        with pytest.raises(ValueError):
            PrecisionContext(64, rounding="sideways")

    def test_directed_rounding_brackets_value(self):
        exact = PrecisionContext(256)
        third = exact.mp.mpf(1) / 3
        down = PrecisionContext(10, rounding="down").round(third)
        up = PrecisionContext(10, rounding="up").round(third)
        assert down < third < up

    def test_rounding_name(self):
        ctx = PrecisionContext(64)
        ctx.rounding = "toward_zero"
        assert ctx.rounding == "d"
        assert ctx.rounding_name == "toward_zero"


class TestDefaultContext(unittest.TestCase):
    """Test the module-level helpers operating on the default context."""

    def tearDown(self):
        precision.set_precision(DEFAULT_PRECISION)
        precision.set_rounding("nearest")
        precision.set_strict_mode(False)

    def test_set_precision_returns_applied_value(self):
        self.assertEqual(precision.set_precision(1), MIN_PRECISION)
        self.assertEqual(precision.set_precision(10**6), MAX_PRECISION)
        self.assertEqual(precision.set_precision(300), 300)
        self.assertEqual(precision.get_precision(), 300)

    def test_set_precision_invalidates_cache(self):
        ctx = precision.get_context()
        ctx.constant("pi")
        precision.set_precision(300)
        self.assertFalse(ctx.is_cached("pi"))

    def test_strict_mode(self):
        precision.set_strict_mode(True)
        self.assertTrue(precision.is_strict_mode())
        precision.set_strict_mode(False)
        self.assertFalse(precision.is_strict_mode())

    def test_set_rounding(self):
        precision.set_rounding("up")
        self.assertEqual(precision.get_context().rounding, "c")


if __name__ == "__main__":
    unittest.main()
