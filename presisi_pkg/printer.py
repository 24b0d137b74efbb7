"""Rendering of expression trees: infix text, debug trees and SymPy objects."""

from __future__ import annotations

import sympy as sp

from . import registry
from .ast_nodes import BinOp, Constant, FunctionCall, Node, Number, Unary
from .precision import LOG10_2, PrecisionContext, get_context
from .tokens import COMPARISON_TOKENS, OPERATOR_SYMBOLS, TokenType
from .types import InternalError

_PRECEDENCE = {
    TokenType.PLUS: 2,
    TokenType.MINUS: 2,
    TokenType.STAR: 3,
    TokenType.SLASH: 3,
    TokenType.CARET: 4,
}
_PRECEDENCE.update({op: 1 for op in COMPARISON_TOKENS})

_PRETTY_OPERATORS = {TokenType.STAR: "×", TokenType.SLASH: "÷"}
_PRETTY_CONSTANTS = {"pi": "π", "gamma": "γ", "sqrt2": "√2"}


def _number_text(node: Number, context: PrecisionContext) -> str:
    """Literal text that parses back to ``node``.

    Integral float literals are written out in full only while they have
    fewer digits than the precision carries; larger ones (``1e5000``) keep
    exponent form.
    """
    mp = context.mp
    value = node.value
    digits = int(context.precision * LOG10_2) + 2
    if node.is_int:
        return str(int(value))
    if mp.isint(value) and abs(value) < mp.mpf(10) ** digits:
        return str(int(value))
    return mp.nstr(value, digits)


class InfixPrinter:
    """Renders a tree as infix text with the fewest parentheses that keep its shape.

    Plain output parses back to the same tree shape; ``pretty`` output uses
    ×, ÷, π and √ for display only.
    """

    def __init__(self, context: PrecisionContext | None = None, pretty: bool = False):
        self.context = context or get_context()
        self.pretty = pretty

    def render(self, node: Node) -> str:
        return self._render(node, top_level=True)

    def _render(self, node: Node, top_level: bool = False) -> str:
        if isinstance(node, Number):
            text = _number_text(node, self.context)
            if text.startswith("-") and not top_level:
                return f"({text})"
            return text
        if isinstance(node, Constant):
            if self.pretty:
                return _PRETTY_CONSTANTS.get(node.name, node.name)
            return node.name
        if isinstance(node, FunctionCall):
            args = ", ".join(self._render(arg, top_level=True) for arg in node.args)
            if self.pretty and node.func is TokenType.SQRT:
                return f"√({args})"
            return f"{node.name}({args})"
        if isinstance(node, Unary):
            # Unary binds tighter than any binary operator.
            if isinstance(node.operand, BinOp):
                operand = f"({self._render(node.operand, top_level=True)})"
            else:
                operand = self._render(node.operand)
            return f"{OPERATOR_SYMBOLS[node.op]}{operand}"
        if isinstance(node, BinOp):
            return self._render_binop(node)
        raise InternalError(f"Unknown node type: {type(node).__name__}")

    def _operand(self, node: Node, precedence: int, wrap_equal: bool) -> str:
        if isinstance(node, BinOp):
            inner = _PRECEDENCE[node.op]
            if inner < precedence or (wrap_equal and inner == precedence):
                return f"({self._render(node, top_level=True)})"
        return self._render(node)

    def _render_binop(self, node: BinOp) -> str:
        precedence = _PRECEDENCE[node.op]
        right_assoc = node.op is TokenType.CARET

        left = self._operand(node.left, precedence, wrap_equal=right_assoc)
        right = self._operand(node.right, precedence, wrap_equal=not right_assoc)

        if node.op is TokenType.CARET:
            return f"{left}^{right}"
        symbol = OPERATOR_SYMBOLS[node.op]
        if self.pretty:
            symbol = _PRETTY_OPERATORS.get(node.op, symbol)
        return f"{left} {symbol} {right}"


def to_infix(
    node: Node, context: PrecisionContext | None = None, pretty: bool = False
) -> str:
    """Render a tree as infix text.

    Args:
        node: Tree to render
        context: Precision context (controls digits of non-integer literals)
        pretty: Use display symbols instead of re-parseable ASCII

    Returns:
        Infix string, e.g. "2 * sqrt(2)"
    """
    return InfixPrinter(context, pretty).render(node)


def format_tree(node: Node, context: PrecisionContext | None = None) -> str:
    """Indented one-node-per-line dump of a tree, for debugging."""
    context = context or get_context()
    lines: list[str] = []

    def walk(current: Node, indent: int) -> None:
        pad = "  " * indent
        if isinstance(current, Number):
            kind = "int" if current.is_int else "float"
            lines.append(f"{pad}Number({_number_text(current, context)}, {kind})")
        elif isinstance(current, Constant):
            lines.append(f"{pad}Constant({current.name})")
        elif isinstance(current, FunctionCall):
            lines.append(f"{pad}FunctionCall({current.name}, {current.arg_count})")
            for arg in current.args:
                walk(arg, indent + 1)
        elif isinstance(current, BinOp):
            lines.append(f"{pad}BinOp({OPERATOR_SYMBOLS[current.op]})")
            walk(current.left, indent + 1)
            walk(current.right, indent + 1)
        elif isinstance(current, Unary):
            lines.append(f"{pad}Unary({OPERATOR_SYMBOLS[current.op]})")
            walk(current.operand, indent + 1)
        else:
            raise InternalError(f"Unknown node type: {type(current).__name__}")

    walk(node, 0)
    return "\n".join(lines)


_SYMPY_CONSTANTS = {
    "pi": sp.pi,
    "e": sp.E,
    "ln2": sp.log(2),
    "ln10": sp.log(10),
    "gamma": sp.EulerGamma,
    "sqrt2": sp.sqrt(2),
}

_SYMPY_FUNCTIONS = {
    TokenType.SIN: sp.sin,
    TokenType.COS: sp.cos,
    TokenType.TAN: sp.tan,
    TokenType.ASIN: sp.asin,
    TokenType.ACOS: sp.acos,
    TokenType.ATAN: sp.atan,
    TokenType.ATAN2: sp.atan2,
    TokenType.SINH: sp.sinh,
    TokenType.COSH: sp.cosh,
    TokenType.TANH: sp.tanh,
    TokenType.ASINH: sp.asinh,
    TokenType.ACOSH: sp.acosh,
    TokenType.ATANH: sp.atanh,
    TokenType.SQRT: sp.sqrt,
    TokenType.LOG: sp.log,
    TokenType.LOG10: lambda x: sp.log(x, 10),
    TokenType.EXP: sp.exp,
    TokenType.ABS: sp.Abs,
    TokenType.FLOOR: sp.floor,
    TokenType.CEIL: sp.ceiling,
    TokenType.POW: sp.Pow,
}

_SYMPY_OPERATORS = {
    TokenType.PLUS: lambda a, b: a + b,
    TokenType.MINUS: lambda a, b: a - b,
    TokenType.STAR: lambda a, b: a * b,
    TokenType.SLASH: lambda a, b: a / b,
    TokenType.CARET: sp.Pow,
    TokenType.EQ: sp.Eq,
    TokenType.NE: sp.Ne,
    TokenType.LT: sp.Lt,
    TokenType.LE: sp.Le,
    TokenType.GT: sp.Gt,
    TokenType.GE: sp.Ge,
}


def to_sympy(node: Node, context: PrecisionContext | None = None):
    """Convert a tree to an equivalent SymPy expression.

    Integer literals become exact ``Integer`` objects; other literals become
    ``Float`` with as many digits as the context precision supports.
    """
    context = context or get_context()
    if isinstance(node, Number):
        if node.is_int:
            return sp.Integer(int(node.value))
        digits = context.decimal_digits() + 2
        return sp.Float(context.mp.nstr(node.value, digits), digits)
    if isinstance(node, Constant):
        return _SYMPY_CONSTANTS[node.name]
    if isinstance(node, FunctionCall):
        args = [to_sympy(arg, context) for arg in node.args]
        return _SYMPY_FUNCTIONS[node.func](*args)
    if isinstance(node, BinOp):
        return _SYMPY_OPERATORS[node.op](
            to_sympy(node.left, context), to_sympy(node.right, context)
        )
    if isinstance(node, Unary):
        operand = to_sympy(node.operand, context)
        return -operand if node.op is TokenType.MINUS else operand
    raise InternalError(f"Unknown node type: {type(node).__name__}")


def function_signature(name: str) -> str:
    """Human-readable call signature for a registered function name."""
    entry = registry.lookup(name)
    if entry is None or entry.is_constant:
        raise ValueError(f"{name} is not a registered function")
    params = ("x",) if entry.arity == 1 else ("y", "x") if entry.canonical == "atan2" else ("x", "y")
    return f"{entry.canonical}({', '.join(params)})"
