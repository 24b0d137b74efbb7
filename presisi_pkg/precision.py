"""Precision and constants management.

A ``PrecisionContext`` bundles everything numeric code needs: the target
precision in bits, the rounding mode, the strict-mode flag, a private mpmath
context running at the working precision (target + guard bits) and a cache of
mathematical constants. Contexts are independent of each other, so callers
that need isolation create their own; the module-level helpers operate on a
process-wide default context.
"""

from __future__ import annotations

import math

from mpmath.ctx_mp import MPContext

from .config import (
    DEFAULT_PRECISION,
    DEFAULT_ROUNDING,
    GUARD_BITS,
    MAX_PRECISION,
    MIN_PRECISION,
    ROUNDING_MODES,
    STRICT_MODE,
    ZERO_SNAP_MARGIN,
)
from .logging_config import get_logger

logger = get_logger("precision")

LOG10_2 = math.log10(2)

# Each loader runs on the context's mpmath instance at the current
# working precision.
_CONSTANT_LOADERS = {
    "pi": lambda mp: +mp.pi,
    "e": lambda mp: +mp.e,
    "ln2": lambda mp: +mp.ln2,
    "ln10": lambda mp: +mp.ln10,
    "gamma": lambda mp: +mp.euler,
    "sqrt2": lambda mp: mp.sqrt(2),
}


def clamp_precision(bits: int) -> int:
    """Clamp a requested precision into the supported range."""
    return max(MIN_PRECISION, min(MAX_PRECISION, int(bits)))


def resolve_rounding(mode: str) -> str:
    """Translate a rounding mode name into an mpmath rounding code.

    Accepts either a name from ``ROUNDING_MODES`` or a raw mpmath code.

    Raises:
        ValueError: If the mode is unknown
    """
    key = mode.strip().lower()
    if key in ROUNDING_MODES:
        return ROUNDING_MODES[key]
    if key in ROUNDING_MODES.values():
        return key
    raise ValueError(
        f"Unknown rounding mode {mode!r}; choose one of {', '.join(ROUNDING_MODES)}"
    )


class PrecisionContext:
    """Precision, rounding and constants cache for one evaluation session."""

    def __init__(
        self,
        precision: int = DEFAULT_PRECISION,
        rounding: str = DEFAULT_ROUNDING,
        strict: bool = STRICT_MODE,
        guard_bits: int = GUARD_BITS,
    ):
        self.mp = MPContext()
        self.guard_bits = guard_bits
        self.strict = strict
        self._rounding = resolve_rounding(rounding)
        self._constants: dict[str, object] = {}
        self._precision = clamp_precision(precision)
        self.mp.prec = self.working_precision

    @property
    def precision(self) -> int:
        return self._precision

    @precision.setter
    def precision(self, bits: int) -> None:
        self._precision = clamp_precision(bits)
        self.mp.prec = self.working_precision
        self.clear_cache()
        logger.debug("Precision set to %d bits", self._precision)

    @property
    def working_precision(self) -> int:
        """Precision used for intermediate results."""
        return self._precision + self.guard_bits

    @property
    def rounding(self) -> str:
        """The mpmath rounding code ('n', 'f', 'c', 'd' or 'u')."""
        return self._rounding

    @rounding.setter
    def rounding(self, mode: str) -> None:
        self._rounding = resolve_rounding(mode)

    @property
    def rounding_name(self) -> str:
        for name, code in ROUNDING_MODES.items():
            if code == self._rounding:
                return name
        return self._rounding

    def clear_cache(self) -> None:
        """Drop every cached constant."""
        self._constants.clear()

    def is_cached(self, name: str) -> bool:
        return name in self._constants

    def constant(self, name: str):
        """Return a constant at the working precision, computing it on first use.

        The value is computed with an extra ``guard_bits`` of precision and
        rounded once before it is cached.

        Raises:
            KeyError: If the constant is not known
        """
        cached = self._constants.get(name)
        if cached is not None:
            return cached
        loader = _CONSTANT_LOADERS[name]
        with self.mp.workprec(self.working_precision + self.guard_bits):
            raw = loader(self.mp)
        value = self.mp.mpf(
            raw, prec=self.working_precision, rounding=self._rounding
        )
        self._constants[name] = value
        logger.debug("Cached constant %s at %d bits", name, self.working_precision)
        return value

    def constant_value(self, name: str):
        """Return a constant rounded to the target precision."""
        return self.round(self.constant(name))

    def mpf(self, text_or_value, prec: int | None = None):
        """Build a number at ``prec`` bits (default: target precision)."""
        bits = self._precision if prec is None else prec
        return self.mp.mpf(text_or_value, prec=bits, rounding=self._rounding)

    def round(self, value, prec: int | None = None):
        """Round a value once to ``prec`` bits (default: target precision)."""
        return self.mpf(value, prec)

    def snap_threshold(self):
        """Magnitude below which function results are treated as exact zero."""
        return self.mp.ldexp(self.mp.mpf(1), -(self._precision + ZERO_SNAP_MARGIN))

    def decimal_digits(self) -> int:
        """Number of significant decimal digits the precision supports."""
        return max(1, int(self._precision * LOG10_2))

    def copy(self, precision: int | None = None) -> "PrecisionContext":
        """Independent context with the same settings and an empty cache."""
        return PrecisionContext(
            self._precision if precision is None else precision,
            self._rounding,
            self.strict,
            self.guard_bits,
        )

    def __repr__(self) -> str:
        return (
            f"PrecisionContext(precision={self._precision}, "
            f"rounding={self.rounding_name!r}, strict={self.strict})"
        )


_default_context = PrecisionContext()


def get_context() -> PrecisionContext:
    """Return the process-wide default context."""
    return _default_context


def set_precision(bits: int) -> int:
    """Set the default precision (clamped) and invalidate the constants cache.

    Returns:
        The precision actually applied
    """
    _default_context.precision = bits
    return _default_context.precision


def get_precision() -> int:
    return _default_context.precision


def set_rounding(mode: str) -> None:
    _default_context.rounding = mode


def set_strict_mode(enabled: bool) -> None:
    _default_context.strict = bool(enabled)


def is_strict_mode() -> bool:
    return _default_context.strict
