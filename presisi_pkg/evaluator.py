"""Numeric evaluation of an AST with guard bits and domain checks.

All intermediate values are computed at the context's working precision
(target precision plus guard bits); the result is rounded once at the end.
Domain violations and division by zero never abort evaluation: they are
recorded on the ``Evaluator`` and the offending subexpression degrades to
0 (or NaN in strict mode for domain violations).
"""

from __future__ import annotations

from . import registry
from .ast_nodes import BinOp, Constant, FunctionCall, Node, Number, Unary
from .logging_config import get_logger
from .precision import PrecisionContext, get_context
from .tokens import TokenType
from .types import CalcArithmeticError, CalcError, DomainError, InternalError

logger = get_logger("evaluator")

# Function token -> (name of mpmath function, domain check or None)
# A domain check returns True when the argument is acceptable.
_UNARY_FUNCTIONS = {
    TokenType.SIN: ("sin", None),
    TokenType.COS: ("cos", None),
    TokenType.TAN: ("tan", None),
    TokenType.ASIN: ("asin", lambda x: -1 <= x <= 1),
    TokenType.ACOS: ("acos", lambda x: -1 <= x <= 1),
    TokenType.ATAN: ("atan", None),
    TokenType.SINH: ("sinh", None),
    TokenType.COSH: ("cosh", None),
    TokenType.TANH: ("tanh", None),
    TokenType.ASINH: ("asinh", None),
    TokenType.ACOSH: ("acosh", lambda x: x >= 1),
    TokenType.ATANH: ("atanh", lambda x: -1 < x < 1),
    TokenType.SQRT: ("sqrt", lambda x: x >= 0),
    TokenType.LOG: ("log", lambda x: x > 0),
    TokenType.LOG10: ("log10", lambda x: x > 0),
    TokenType.EXP: ("exp", None),
    TokenType.ABS: ("fabs", None),
    TokenType.FLOOR: ("floor", None),
    TokenType.CEIL: ("ceil", None),
}

_DOMAIN_MESSAGES = {
    TokenType.ASIN: "argument must be in [-1, 1]",
    TokenType.ACOS: "argument must be in [-1, 1]",
    TokenType.ACOSH: "argument must be >= 1",
    TokenType.ATANH: "argument must be in (-1, 1)",
    TokenType.SQRT: "argument must be >= 0",
    TokenType.LOG: "argument must be > 0",
    TokenType.LOG10: "argument must be > 0",
}


class Evaluator:
    """Evaluates trees against one precision context.

    Errors recorded during an evaluation are kept in ``errors`` (reset at
    the start of each ``evaluate`` call); ``last_error`` is the most recent.
    """

    def __init__(self, context: PrecisionContext | None = None):
        self.context = context or get_context()
        self.errors: list[CalcError] = []

    @property
    def last_error(self) -> CalcError | None:
        return self.errors[-1] if self.errors else None

    def clear_errors(self) -> None:
        self.errors = []

    def evaluate(self, node: Node):
        """Evaluate a tree and round the result to the target precision.

        Args:
            node: Root of the tree (not modified)

        Returns:
            mpmath mpf at the context precision
        """
        self.clear_errors()
        return self.context.round(self._eval(node))

    def _record(self, error: CalcError) -> None:
        self.errors.append(error)
        logger.info("Evaluation error recorded (%s): %s", error.code, error.message)

    def _division_by_zero(self):
        self._record(CalcArithmeticError("Division by zero"))
        return self.context.mp.zero

    def _domain_error(self, message: str):
        self._record(DomainError(message))
        mp = self.context.mp
        return mp.nan if self.context.strict else mp.zero

    def _eval(self, node: Node):
        if isinstance(node, Number):
            return self.context.mp.mpf(node.value)
        if isinstance(node, Constant):
            return self.context.constant(node.name)
        if isinstance(node, BinOp):
            return self._eval_binop(node)
        if isinstance(node, Unary):
            return self._eval_unary(node)
        if isinstance(node, FunctionCall):
            return self._eval_function(node)
        raise InternalError(f"Unknown node type: {type(node).__name__}")

    def _eval_unary(self, node: Unary):
        operand = self._eval(node.operand)
        if node.op is TokenType.MINUS:
            return -operand
        if node.op is TokenType.PLUS:
            return operand
        raise InternalError(f"Unknown unary operator: {node.op}")

    def _eval_binop(self, node: BinOp):
        mp = self.context.mp
        rounding = self.context.rounding
        left = self._eval(node.left)
        right = self._eval(node.right)
        op = node.op

        if op is TokenType.PLUS:
            return mp.fadd(left, right, rounding=rounding)
        if op is TokenType.MINUS:
            return mp.fsub(left, right, rounding=rounding)
        if op is TokenType.STAR:
            return mp.fmul(left, right, rounding=rounding)
        if op is TokenType.SLASH:
            if right == 0:
                return self._division_by_zero()
            return mp.fdiv(left, right, rounding=rounding)
        if op is TokenType.CARET:
            return self._power(left, right)

        if op is TokenType.EQ:
            result = left == right
        elif op is TokenType.NE:
            result = left != right
        elif op is TokenType.LT:
            result = left < right
        elif op is TokenType.LE:
            result = left <= right
        elif op is TokenType.GT:
            result = left > right
        elif op is TokenType.GE:
            result = left >= right
        else:
            raise InternalError(f"Unknown binary operator: {op}")
        return mp.one if result else mp.zero

    def _power(self, base, exponent):
        mp = self.context.mp
        if base == 0 and exponent < 0:
            return self._division_by_zero()
        if base < 0 and not mp.isint(exponent):
            return self._domain_error(
                "pow domain error: negative base requires an integer exponent"
            )
        return mp.power(base, exponent)

    def _eval_function(self, node: FunctionCall):
        mp = self.context.mp
        args = [self._eval(arg) for arg in node.args]
        func = node.func

        if func is TokenType.ATAN2:
            result = mp.atan2(args[0], args[1])
        elif func is TokenType.POW:
            result = self._power(args[0], args[1])
        elif func in _UNARY_FUNCTIONS:
            x = args[0]
            mp_name, in_domain = _UNARY_FUNCTIONS[func]
            if mp.isnan(x):
                return x
            if in_domain is not None and not in_domain(x):
                return self._domain_error(
                    f"{registry.function_name(func)} domain error: "
                    f"{_DOMAIN_MESSAGES[func]}"
                )
            result = getattr(mp, mp_name)(x)
        else:
            raise InternalError(f"Unknown function: {func}")

        if result != 0 and mp.fabs(result) < self.context.snap_threshold():
            return mp.zero
        return result


def evaluate(node: Node, context: PrecisionContext | None = None):
    """Evaluate a tree with a fresh ``Evaluator``; recorded errors are discarded.

    Use ``Evaluator`` directly to inspect recorded errors.
    """
    return Evaluator(context).evaluate(node)
