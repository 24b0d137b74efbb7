"""Type definitions, result dataclasses and the error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class EvalResult:
    """Result of evaluating a mathematical expression."""

    ok: bool
    result: str | None = None
    value: Any = None
    is_integer: bool | None = None
    precision: int | None = None
    warning: str | None = None
    error: str | None = None
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.result is not None:
            result_dict["result"] = self.result
        if self.is_integer is not None:
            result_dict["is_integer"] = self.is_integer
        if self.precision is not None:
            result_dict["precision"] = self.precision
        if self.warning is not None:
            result_dict["warning"] = self.warning
        if self.error is not None:
            result_dict["error"] = self.error
        if self.code is not None:
            result_dict["code"] = self.code
        return result_dict

    def __repr__(self) -> str:
        """Return string representation of the result."""
        if not self.ok:
            return f"EvalResult(ok=False, error={self.error!r}, code={self.code!r})"
        parts = [f"ok={self.ok}"]
        if self.result is not None:
            parts.append(f"result={self.result!r}")
        if self.is_integer is not None:
            parts.append(f"is_integer={self.is_integer!r}")
        if self.warning is not None:
            parts.append(f"warning={self.warning!r}")
        return f"EvalResult({', '.join(parts)})"


@dataclass
class SimplifyResult:
    """Result of symbolically simplifying an expression."""

    ok: bool
    result: str | None = None
    tree: Any = None
    warning: str | None = None
    error: str | None = None
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok, "type": "simplify"}
        if self.result is not None:
            result_dict["result"] = self.result
        if self.warning is not None:
            result_dict["warning"] = self.warning
        if self.error is not None:
            result_dict["error"] = self.error
        if self.code is not None:
            result_dict["code"] = self.code
        return result_dict

    def __repr__(self) -> str:
        """Return string representation of the result."""
        if not self.ok:
            return f"SimplifyResult(ok=False, error={self.error!r}, code={self.code!r})"
        parts = [f"ok={self.ok}", f"result={self.result!r}"]
        if self.warning is not None:
            parts.append(f"warning={self.warning!r}")
        return f"SimplifyResult({', '.join(parts)})"


class CalcError(Exception):
    """Base class for calculator errors."""

    default_code = "CALC_ERROR"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class LexError(CalcError):
    """Raised for malformed characters or literals, or oversized input."""

    default_code = "INVALID_TOKEN"


class ParseError(CalcError):
    """Raised when the token stream does not form a valid expression."""

    default_code = "PARSE_ERROR"


class DomainError(CalcError):
    """A function argument lies outside the function's domain.

    Recorded by the evaluator rather than raised.
    """

    default_code = "DOMAIN_ERROR"


class CalcArithmeticError(CalcError, ArithmeticError):
    """Division by zero. Recorded by the evaluator and simplifier."""

    default_code = "DIVISION_BY_ZERO"


class InternalError(CalcError):
    """An unrecognized node or operator reached a component."""

    default_code = "INTERNAL_ERROR"
