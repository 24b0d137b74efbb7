"""Public API for Kalkulator Presisi.

The tuple-returning functions are the core entry points used by the CLI;
``evaluate`` and ``simplify_expression`` wrap them into result dataclasses.
"""

from __future__ import annotations

from typing import Any

from .ast_nodes import Node, iter_numbers
from .evaluator import Evaluator
from .formatter import format_value
from .logging_config import get_logger
from .parser import parse
from .precision import PrecisionContext, clamp_precision, get_context
from .precision import set_precision as _set_precision
from .printer import to_infix
from .symbolic import Simplifier
from .types import CalcError, EvalResult, SimplifyResult

logger = get_logger("api")


def _resolve_context(
    precision_bits: int | None, context: PrecisionContext | None
) -> PrecisionContext:
    base = context or get_context()
    if precision_bits is None or clamp_precision(precision_bits) == base.precision:
        return base
    return base.copy(precision_bits)


def _is_integer_result(tree: Node, value, context: PrecisionContext) -> bool:
    return bool(context.mp.isint(value)) and all(
        number.is_int for number in iter_numbers(tree)
    )


def set_precision(bits: int) -> int:
    """Set the default precision, clamped to the supported range.

    Invalidates the constants cache.

    Returns:
        The precision actually applied
    """
    return _set_precision(bits)


def parse_and_evaluate(
    text: str,
    precision_bits: int | None = None,
    context: PrecisionContext | None = None,
) -> tuple[Any, bool, str | None]:
    """Parse and numerically evaluate an expression.

    Args:
        text: Expression (e.g., "2+3*4", "sin(pi/2)")
        precision_bits: Precision for this call (default: context precision)
        context: Precision context (default: the process-wide one)

    Returns:
        (value, is_integer, error). ``value`` is None when parsing failed;
        otherwise ``error`` is the last evaluation error recorded, if any.
    """
    ctx = _resolve_context(precision_bits, context)
    try:
        tree = parse(text, ctx)
    except CalcError as exc:
        return None, False, exc.message
    evaluator = Evaluator(ctx)
    value = evaluator.evaluate(tree)
    error = evaluator.last_error
    return value, _is_integer_result(tree, value, ctx), error.message if error else None


def parse_and_simplify(
    text: str, context: PrecisionContext | None = None
) -> tuple[Node | None, str | None]:
    """Parse and symbolically simplify an expression.

    Returns:
        (tree, error). ``tree`` is None when parsing failed; a division by zero
        found while simplifying is reported next to the simplified tree.
    """
    ctx = context or get_context()
    try:
        tree = parse(text, ctx)
    except CalcError as exc:
        return None, exc.message
    simplifier = Simplifier(ctx)
    result = simplifier.simplify(tree)
    error = simplifier.last_error
    return result, error.message if error else None


def evaluate(
    expression: str,
    precision_bits: int | None = None,
    mode: str | None = None,
    context: PrecisionContext | None = None,
) -> EvalResult:
    """Evaluate an expression and format the result.

    Args:
        expression: Mathematical expression string (e.g., "2+2", "sin(pi/2)")
        precision_bits: Precision for this call
        mode: Display mode ("smart", "scientific", "fixed")
        context: Precision context

    Returns:
        EvalResult with the formatted result, or the error and its code

    Example:
        >>> from presisi_pkg.api import evaluate
        >>> evaluate("2(3+4)").result
        '14'
    """
    ctx = _resolve_context(precision_bits, context)
    logger.debug("Evaluating %r at %d bits", expression, ctx.precision)
    try:
        tree = parse(expression, ctx)
    except CalcError as exc:
        return EvalResult(ok=False, error=exc.message, code=exc.code)

    evaluator = Evaluator(ctx)
    value = evaluator.evaluate(tree)
    is_integer = _is_integer_result(tree, value, ctx)
    warning = evaluator.last_error
    return EvalResult(
        ok=True,
        result=format_value(value, ctx, mode, is_integer),
        value=value,
        is_integer=is_integer,
        precision=ctx.precision,
        warning=warning.message if warning else None,
        code=warning.code if warning else None,
    )


def simplify_expression(
    expression: str,
    context: PrecisionContext | None = None,
    pretty: bool = False,
) -> SimplifyResult:
    """Simplify an expression and render the result as infix text.

    Example:
        >>> from presisi_pkg.api import simplify_expression
        >>> simplify_expression("sqrt(8)").result
        '2 * sqrt(2)'
    """
    ctx = context or get_context()
    logger.debug("Simplifying %r", expression)
    try:
        tree = parse(expression, ctx)
    except CalcError as exc:
        return SimplifyResult(ok=False, error=exc.message, code=exc.code)

    simplifier = Simplifier(ctx)
    result = simplifier.simplify(tree)
    warning = simplifier.last_error
    return SimplifyResult(
        ok=True,
        result=to_infix(result, ctx, pretty),
        tree=result,
        warning=warning.message if warning else None,
        code=warning.code if warning else None,
    )
