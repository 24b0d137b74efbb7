"""AST node classes.

Nodes are immutable; every transformation builds new nodes. The closed set
is ``Number``, ``Constant``, ``FunctionCall``, ``BinOp`` and ``Unary``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from . import registry
from .tokens import COMPARISON_TOKENS, FUNCTION_TOKENS, TokenType
from .types import InternalError

BINARY_OPERATORS = frozenset(
    {
        TokenType.PLUS,
        TokenType.MINUS,
        TokenType.STAR,
        TokenType.SLASH,
        TokenType.CARET,
    }
) | COMPARISON_TOKENS

UNARY_OPERATORS = frozenset({TokenType.PLUS, TokenType.MINUS})


@dataclass(frozen=True)
class Number:
    value: Any  # mpf
    is_int: bool = False


@dataclass(frozen=True)
class Constant:
    name: str

    def __post_init__(self):
        if not registry.is_constant(self.name):
            raise InternalError(f"Unknown constant: {self.name}")


@dataclass(frozen=True)
class FunctionCall:
    func: TokenType
    args: tuple

    def __post_init__(self):
        if self.func not in FUNCTION_TOKENS:
            raise InternalError(f"Not a function token: {self.func}")
        expected = registry.arity(self.func)
        if len(self.args) != expected:
            raise InternalError(
                f"{registry.function_name(self.func)} node built with "
                f"{len(self.args)} arguments, arity is {expected}"
            )

    @property
    def arg_count(self) -> int:
        return len(self.args)

    @property
    def name(self) -> str:
        return registry.function_name(self.func)


@dataclass(frozen=True)
class BinOp:
    op: TokenType
    left: "Node"
    right: "Node"

    def __post_init__(self):
        if self.op not in BINARY_OPERATORS:
            raise InternalError(f"Unknown binary operator: {self.op}")


@dataclass(frozen=True)
class Unary:
    op: TokenType
    operand: "Node"

    def __post_init__(self):
        if self.op not in UNARY_OPERATORS:
            raise InternalError(f"Unknown unary operator: {self.op}")


Node = Union[Number, Constant, FunctionCall, BinOp, Unary]


def children(node: Node) -> tuple:
    """Direct sub-trees of a node, left to right."""
    if isinstance(node, BinOp):
        return (node.left, node.right)
    if isinstance(node, Unary):
        return (node.operand,)
    if isinstance(node, FunctionCall):
        return node.args
    return ()


def count_nodes(node: Node) -> int:
    """Total number of nodes in a tree."""
    total = 0
    stack = [node]
    while stack:
        current = stack.pop()
        total += 1
        stack.extend(children(current))
    return total


def tree_depth(node: Node) -> int:
    """Height of a tree; a single leaf has depth 1. Uses an explicit stack."""
    deepest = 0
    stack = [(node, 1)]
    while stack:
        current, depth = stack.pop()
        deepest = max(deepest, depth)
        stack.extend((child, depth + 1) for child in children(current))
    return deepest


def iter_numbers(node: Node):
    """Yield every ``Number`` leaf of a tree, left to right."""
    if isinstance(node, Number):
        yield node
    elif isinstance(node, BinOp):
        yield from iter_numbers(node.left)
        yield from iter_numbers(node.right)
    elif isinstance(node, Unary):
        yield from iter_numbers(node.operand)
    elif isinstance(node, FunctionCall):
        for arg in node.args:
            yield from iter_numbers(arg)
