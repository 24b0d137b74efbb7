"""Text rendering of numeric results.

Three display modes are supported:

- ``smart``: integers verbatim; fixed notation with trailing zeros removed,
  switching to scientific notation outside [1e-6, 1e15)
- ``scientific``: always ``d.ddd…e±N``
- ``fixed``: a fixed number of decimal places
"""

from __future__ import annotations

from mpmath.libmp import numeral

from .config import (
    DISPLAY_MODE,
    DISPLAY_MODES,
    MAX_DISPLAY_DIGITS,
    SCIENTIFIC_LARGE,
    SCIENTIFIC_SMALL,
)
from .precision import LOG10_2, PrecisionContext, get_context

_INF = float("inf")

MODE_DESCRIPTIONS = {
    "smart": "normal (smart): integers verbatim, scientific only for very small or large magnitudes",
    "scientific": "scientific: every result as d.ddd…e±N",
    "fixed": "fixed: a fixed number of decimal places",
}


def display_digits(context: PrecisionContext, max_digits: int | None = None) -> int:
    """Significant digits to show for the context precision, capped by ``max_digits``."""
    digits = context.decimal_digits()
    cap = MAX_DISPLAY_DIGITS if max_digits is None else max_digits
    if cap > 0:
        digits = min(digits, cap)
    return digits


def format_scientific(value, context: PrecisionContext, digits: int) -> str:
    return context.mp.nstr(
        value, digits, min_fixed=_INF, max_fixed=-_INF, show_zero_exponent=True
    )


def format_fixed(value, context: PrecisionContext, places: int) -> str:
    """Round to ``places`` decimal places and render without an exponent."""
    mp = context.mp
    scaled = int(mp.nint(mp.fmul(value, 10**places, exact=True)))
    sign = "-" if scaled < 0 else ""
    size = int(abs(scaled).bit_length() * LOG10_2) + 1
    text = numeral(abs(scaled), 10, size).rjust(places + 1, "0")
    if places == 0:
        return f"{sign}{text}"
    return f"{sign}{text[:-places]}.{text[-places:]}"


def format_value(
    value,
    context: PrecisionContext | None = None,
    mode: str | None = None,
    is_integer: bool = False,
    max_digits: int | None = None,
) -> str:
    """Render a numeric result.

    Args:
        value: mpmath mpf
        context: Precision context (decides the number of digits)
        mode: "smart", "scientific" or "fixed" (default from config)
        is_integer: Whether the expression was integer-valued by construction
        max_digits: Cap on displayed digits (0 for no cap)

    Returns:
        Display string (e.g. "14", "0.333…", "1.0e-30", "nan")

    Raises:
        ValueError: If the mode is unknown
    """
    context = context or get_context()
    mp = context.mp
    mode = mode or DISPLAY_MODE
    if mode not in DISPLAY_MODES:
        raise ValueError(f"Unknown display mode {mode!r}")

    if mp.isnan(value):
        return "nan"
    if mp.isinf(value):
        return "inf" if value > 0 else "-inf"

    digits = display_digits(context, max_digits)

    if mode == "scientific":
        return format_scientific(value, context, digits)
    magnitude = abs(value)
    if mode == "fixed":
        # Integer parts longer than the significant digits are rounding noise.
        if magnitude >= mp.mpf(10) ** digits:
            return format_scientific(value, context, digits)
        return format_fixed(value, context, digits)

    if mp.isint(value):
        limit = mp.mpf(10) ** digits if is_integer else SCIENTIFIC_LARGE
        if magnitude < limit:
            return str(int(value))
    if value != 0 and (magnitude < SCIENTIFIC_SMALL or magnitude >= SCIENTIFIC_LARGE):
        return format_scientific(value, context, digits)
    return mp.nstr(value, digits, min_fixed=-_INF, max_fixed=_INF)
