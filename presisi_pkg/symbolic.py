"""Symbolic simplification of expression trees.

Simplification is one bottom-up pass: children are simplified first, then at
most one rewrite rule fires at the parent (first match wins). Rules that
produce new sub-expressions run the parent-level rules once more on those
pieces, but there is no fixpoint iteration over the whole tree.

Commutative operators (``+`` and ``*``) are put in canonical order before
any rule is tried, using the total order of ``compare_nodes``.
"""

from __future__ import annotations

import sympy as sp

from .ast_nodes import BinOp, Constant, FunctionCall, Node, Number, Unary
from .config import SQUARE_TRIAL_LIMIT
from .logging_config import get_logger
from .precision import PrecisionContext, get_context
from .tokens import TokenType
from .types import CalcArithmeticError, CalcError, InternalError

logger = get_logger("symbolic")

# Number < Constant < FunctionCall < BinOp < Unary
_NODE_RANK = {Number: 0, Constant: 1, FunctionCall: 2, BinOp: 3, Unary: 4}

_COMMUTATIVE = (TokenType.PLUS, TokenType.STAR)


def _sign(a, b) -> int:
    return int(a > b) - int(a < b)


def compare_nodes(a: Node, b: Node) -> int:
    """Total order over trees.

    Returns:
        -1, 0 or 1 as ``a`` sorts before, equal to, or after ``b``
    """
    rank_a, rank_b = _NODE_RANK[type(a)], _NODE_RANK[type(b)]
    if rank_a != rank_b:
        return _sign(rank_a, rank_b)

    if isinstance(a, Number):
        return _sign(a.value, b.value) or _sign(a.is_int, b.is_int)
    if isinstance(a, Constant):
        return _sign(a.name, b.name)
    if isinstance(a, FunctionCall):
        result = _sign(a.func.value, b.func.value) or _sign(len(a.args), len(b.args))
        if result:
            return result
        for arg_a, arg_b in zip(a.args, b.args):
            result = compare_nodes(arg_a, arg_b)
            if result:
                return result
        return 0
    if isinstance(a, BinOp):
        return (
            _sign(a.op.value, b.op.value)
            or compare_nodes(a.left, b.left)
            or compare_nodes(a.right, b.right)
        )
    return _sign(a.op.value, b.op.value) or compare_nodes(a.operand, b.operand)


def structurally_equal(a: Node | None, b: Node | None) -> bool:
    """Exact tree equality: same shapes, same operators, equal leaves.

    Numbers compare by value and integer flag, constants by name. Two absent
    trees are equal.
    """
    if a is None or b is None:
        return a is None and b is None
    if type(a) is not type(b):
        return False
    if isinstance(a, Number):
        return a.is_int == b.is_int and a.value == b.value
    if isinstance(a, Constant):
        return a.name == b.name
    if isinstance(a, FunctionCall):
        return (
            a.func is b.func
            and len(a.args) == len(b.args)
            and all(structurally_equal(x, y) for x, y in zip(a.args, b.args))
        )
    if isinstance(a, BinOp):
        return (
            a.op is b.op
            and structurally_equal(a.left, b.left)
            and structurally_equal(a.right, b.right)
        )
    if isinstance(a, Unary):
        return a.op is b.op and structurally_equal(a.operand, b.operand)
    raise InternalError(f"Unknown node type: {type(a).__name__}")


def largest_square_factor(n: int, limit: int = SQUARE_TRIAL_LIMIT) -> tuple[int, int]:
    """Split ``n`` into ``root**2 * rest`` with ``root`` as large as trial division finds.

    Perfect squares are recognised directly; otherwise trial divisors stop
    at ``limit``, so square factors of larger primes stay in ``rest``.

    Args:
        n: Non-negative integer
        limit: Largest trial divisor

    Returns:
        (root, rest) with n == root**2 * rest
    """
    root, exact = sp.integer_nthroot(n, 2)
    if exact:
        return int(root), 1

    root = 1
    rest = n
    i = 2
    while i <= limit and i * i <= rest:
        square = i * i
        while rest % square == 0:
            rest //= square
            root *= i
        i += 1
    return root, rest


def _is_value(node: Node, value) -> bool:
    return isinstance(node, Number) and node.value == value


def _is_int_literal(node: Node) -> bool:
    return isinstance(node, Number) and node.is_int


def _is_constant(node: Node, name: str) -> bool:
    return isinstance(node, Constant) and node.name == name


def _is_call(node: Node, func: TokenType) -> bool:
    return isinstance(node, FunctionCall) and node.func is func


def _is_product(node: Node) -> bool:
    return isinstance(node, BinOp) and node.op is TokenType.STAR


def _is_pi_over(node: Node, denominator: int) -> bool:
    return (
        isinstance(node, BinOp)
        and node.op is TokenType.SLASH
        and _is_constant(node.left, "pi")
        and _is_value(node.right, denominator)
    )


class Simplifier:
    """Rewrites trees into a reduced canonical form.

    Division by zero found while folding is recorded in ``errors`` and the
    quotient is replaced by 0.
    """

    def __init__(
        self,
        context: PrecisionContext | None = None,
        square_trial_limit: int = SQUARE_TRIAL_LIMIT,
    ):
        self.context = context or get_context()
        self.square_trial_limit = square_trial_limit
        self.errors: list[CalcError] = []

    @property
    def last_error(self) -> CalcError | None:
        return self.errors[-1] if self.errors else None

    def simplify(self, node: Node) -> Node:
        """Return a new, simplified tree; ``node`` is left untouched."""
        self.errors = []
        return self._simplify(node)

    def _int(self, value: int) -> Number:
        return Number(self.context.mpf(value), True)

    def _simplify(self, node: Node) -> Node:
        if isinstance(node, Number):
            return Number(node.value, node.is_int)
        if isinstance(node, Constant):
            return Constant(node.name)
        if isinstance(node, Unary):
            return Unary(node.op, self._simplify(node.operand))
        if isinstance(node, BinOp):
            return self._combine(
                node.op, self._simplify(node.left), self._simplify(node.right)
            )
        if isinstance(node, FunctionCall):
            return self._call(
                node.func, tuple(self._simplify(arg) for arg in node.args)
            )
        raise InternalError(f"Unknown node type: {type(node).__name__}")

    def _combine(self, op: TokenType, left: Node, right: Node) -> Node:
        """Apply the rules for ``left op right``, whose operands are already simplified."""
        if op in _COMMUTATIVE and compare_nodes(left, right) > 0:
            left, right = right, left

        rule = self._BINARY_RULES.get(op)
        if rule is not None:
            rewritten = rule(self, left, right)
            if rewritten is not None:
                return rewritten
        return BinOp(op, left, right)

    def _sum(self, left: Node, right: Node) -> Node | None:
        if _is_value(right, 0):
            return left
        if _is_value(left, 0):
            return right
        if _is_int_literal(left) and _is_int_literal(right):
            return self._int(int(left.value) + int(right.value))
        if structurally_equal(left, right):
            return self._combine(TokenType.STAR, self._int(2), left)
        # Like terms: the coefficient is the left factor of a product.
        if _is_product(left) and structurally_equal(left.right, right):
            coefficient = self._combine(TokenType.PLUS, left.left, self._int(1))
            return self._combine(TokenType.STAR, coefficient, right)
        if _is_product(right) and structurally_equal(right.right, left):
            coefficient = self._combine(TokenType.PLUS, self._int(1), right.left)
            return self._combine(TokenType.STAR, coefficient, left)
        if (
            _is_product(left)
            and _is_product(right)
            and structurally_equal(left.right, right.right)
        ):
            coefficient = self._combine(TokenType.PLUS, left.left, right.left)
            return self._combine(TokenType.STAR, coefficient, left.right)
        return None

    def _difference(self, left: Node, right: Node) -> Node | None:
        if _is_value(right, 0):
            return left
        if structurally_equal(left, right):
            return self._int(0)
        return None

    def _product(self, left: Node, right: Node) -> Node | None:
        if _is_value(left, 0) or _is_value(right, 0):
            return self._int(0)
        if _is_value(right, 1):
            return left
        if _is_value(left, 1):
            return right
        if _is_int_literal(left) and _is_int_literal(right):
            return self._int(int(left.value) * int(right.value))
        if _is_call(left, TokenType.SQRT) and _is_call(right, TokenType.SQRT):
            radicand = self._combine(TokenType.STAR, left.args[0], right.args[0])
            return self._call(TokenType.SQRT, (radicand,))
        return None

    def _quotient(self, left: Node, right: Node) -> Node | None:
        if _is_value(right, 0):
            self.errors.append(CalcArithmeticError("Division by zero"))
            logger.info("Division by zero while simplifying")
            return self._int(0)
        if _is_value(right, 1):
            return left
        if structurally_equal(left, right):
            return self._int(1)
        if _is_value(left, 0):
            return self._int(0)

        # (a*b)/b -> a, (a*b)/a -> b
        if _is_product(left):
            if structurally_equal(left.right, right):
                return left.left
            if structurally_equal(left.left, right):
                return left.right
        # b/(a*b) -> 1/a, a/(a*b) -> 1/b
        if _is_product(right):
            if structurally_equal(right.right, left):
                return self._combine(TokenType.SLASH, self._int(1), right.left)
            if structurally_equal(right.left, left):
                return self._combine(TokenType.SLASH, self._int(1), right.right)

        if isinstance(left, BinOp) and left.op in (TokenType.PLUS, TokenType.MINUS):
            return self._combine(
                left.op,
                self._combine(TokenType.SLASH, left.left, right),
                self._combine(TokenType.SLASH, left.right, right),
            )

        if _is_int_literal(left) and _is_int_literal(right):
            numerator, denominator = int(left.value), int(right.value)
            if numerator % denominator == 0:
                return self._int(numerator // denominator)

        # a/sqrt(b) -> (a*sqrt(b))/b
        if _is_call(right, TokenType.SQRT):
            numerator = self._combine(TokenType.STAR, left, right)
            return self._combine(TokenType.SLASH, numerator, right.args[0])
        return None

    def _power(self, left: Node, right: Node) -> Node | None:
        if _is_value(right, 0):
            return self._int(1)
        if _is_value(right, 1):
            return left
        if _is_value(left, 0):
            return self._int(0)
        if _is_value(left, 1):
            return self._int(1)
        return None

    _BINARY_RULES = {
        TokenType.PLUS: _sum,
        TokenType.MINUS: _difference,
        TokenType.STAR: _product,
        TokenType.SLASH: _quotient,
        TokenType.CARET: _power,
    }

    def _call(self, func: TokenType, args: tuple) -> Node:
        """Build ``func(*args)``, folding closed-form special values."""
        if len(args) == 1:
            rewritten = self._special_value(func, args[0])
            if rewritten is not None:
                return rewritten
        return FunctionCall(func, args)

    def _special_value(self, func: TokenType, x: Node) -> Node | None:
        if func is TokenType.SIN:
            if _is_value(x, 0) or _is_constant(x, "pi"):
                return self._int(0)
            if _is_pi_over(x, 2):
                return self._int(1)
        elif func is TokenType.COS:
            if _is_value(x, 0):
                return self._int(1)
            if _is_constant(x, "pi"):
                return self._int(-1)
            if _is_pi_over(x, 2):
                return self._int(0)
        elif func is TokenType.TAN:
            if _is_value(x, 0) or _is_constant(x, "pi"):
                return self._int(0)
            if _is_pi_over(x, 4):
                return self._int(1)
        elif func is TokenType.LOG:
            if _is_value(x, 1):
                return self._int(0)
            if _is_constant(x, "e"):
                return self._int(1)
        elif func is TokenType.LOG10:
            if _is_value(x, 1):
                return self._int(0)
            if _is_value(x, 10):
                return self._int(1)
        elif func is TokenType.EXP:
            if _is_value(x, 0):
                return self._int(1)
            if _is_value(x, 1):
                return Constant("e")
        elif func is TokenType.ABS:
            if isinstance(x, Number):
                return Number(abs(x.value), x.is_int)
        elif func is TokenType.SQRT:
            return self._sqrt(x)
        return None

    def _sqrt(self, x: Node) -> Node | None:
        if not _is_int_literal(x) or x.value < 0:
            return None
        n = int(x.value)
        if n in (0, 1):
            return self._int(n)
        root, rest = largest_square_factor(n, self.square_trial_limit)
        if rest == 1:
            return self._int(root)
        if root > 1:
            return BinOp(
                TokenType.STAR,
                self._int(root),
                FunctionCall(TokenType.SQRT, (self._int(rest),)),
            )
        return None


def simplify(node: Node, context: PrecisionContext | None = None) -> Node:
    """Simplify a tree with a fresh ``Simplifier``.

    Args:
        node: Tree to simplify (not modified)
        context: Precision context for folded numbers

    Returns:
        A new tree
    """
    return Simplifier(context).simplify(node)
