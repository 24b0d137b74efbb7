"""Centralized configuration for Kalkulator Presisi.

This module defines:
- Precision limits and guard bits for arbitrary-precision evaluation
- Input validation limits (length, parse depth, implicit multiplication)
- Simplifier limits
- Display defaults for the formatter and CLI

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with PRESISI_)
"""

import os

# Version is defined in pyproject.toml [project] section
try:
    import importlib.metadata

    VERSION = importlib.metadata.version("kalkulator-presisi")
except Exception:
    # Fallback if package not installed
    VERSION = "1.0.0"

# Precision (bits)
DEFAULT_PRECISION = int(os.getenv("PRESISI_DEFAULT_PRECISION", "256"))
MIN_PRECISION = int(os.getenv("PRESISI_MIN_PRECISION", "2"))
MAX_PRECISION = int(os.getenv("PRESISI_MAX_PRECISION", "8192"))
GUARD_BITS = int(os.getenv("PRESISI_GUARD_BITS", "128"))
ZERO_SNAP_MARGIN = int(
    os.getenv("PRESISI_ZERO_SNAP_MARGIN", "10")
)  # results below 2^-(precision+margin) snap to zero
DEFAULT_ROUNDING = os.getenv("PRESISI_ROUNDING", "nearest")
STRICT_MODE = os.getenv("PRESISI_STRICT_MODE", "false").lower() == "true"

# Rounding mode names mapped to mpmath rounding codes
ROUNDING_MODES = {
    "nearest": "n",
    "down": "f",  # toward -inf
    "up": "c",  # toward +inf
    "toward_zero": "d",
    "away": "u",
}

# Input validation limits
MAX_INPUT_LENGTH = int(os.getenv("PRESISI_MAX_INPUT_LENGTH", "1024"))  # characters
MAX_PARSE_DEPTH = int(
    os.getenv("PRESISI_MAX_PARSE_DEPTH", "100")
)  # nested grammar levels
MAX_TREE_DEPTH = int(
    os.getenv("PRESISI_MAX_TREE_DEPTH", "150")
)  # height of an accepted tree, including flat operator chains
MAX_IMPLICIT_MULTIPLICATIONS = int(
    os.getenv("PRESISI_MAX_IMPLICIT_MULTIPLICATIONS", "1000")
)  # per factor chain

# Simplifier configuration
SQUARE_TRIAL_LIMIT = int(
    os.getenv("PRESISI_SQUARE_TRIAL_LIMIT", "100000")
)  # largest trial divisor for square extraction under sqrt

# Display configuration
DISPLAY_MODE = os.getenv("PRESISI_DISPLAY_MODE", "smart")  # smart, scientific, fixed
DISPLAY_MODES = ("smart", "scientific", "fixed")
MAX_DISPLAY_DIGITS = int(
    os.getenv("PRESISI_MAX_DISPLAY_DIGITS", "0")
)  # 0 means all digits the precision supports
SCIENTIFIC_SMALL = float(os.getenv("PRESISI_SCIENTIFIC_SMALL", "1e-6"))
SCIENTIFIC_LARGE = float(os.getenv("PRESISI_SCIENTIFIC_LARGE", "1e15"))

# Logging
LOG_LEVEL = os.getenv("PRESISI_LOG_LEVEL", "WARNING").upper()
LOG_FILE = os.getenv("PRESISI_LOG_FILE") or None

# REPL
HISTORY_SIZE = int(os.getenv("PRESISI_HISTORY_SIZE", "100"))
