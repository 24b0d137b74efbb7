"""Token types and the token record produced by the lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Union


class TokenType(Enum):
    # Literals
    INT = auto()
    FLOAT = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    CARET = auto()
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()

    # Comparisons
    EQ = auto()
    NE = auto()
    LT = auto()
    LE = auto()
    GT = auto()
    GE = auto()

    # Functions
    SIN = auto()
    COS = auto()
    TAN = auto()
    ASIN = auto()
    ACOS = auto()
    ATAN = auto()
    ATAN2 = auto()
    SINH = auto()
    COSH = auto()
    TANH = auto()
    ASINH = auto()
    ACOSH = auto()
    ATANH = auto()
    SQRT = auto()
    LOG = auto()
    LOG10 = auto()
    EXP = auto()
    ABS = auto()
    FLOOR = auto()
    CEIL = auto()
    POW = auto()

    # Names
    CONSTANT = auto()
    IDENTIFIER = auto()

    EOF = auto()
    INVALID = auto()


NUMBER_TOKENS = frozenset({TokenType.INT, TokenType.FLOAT})

FUNCTION_TOKENS = frozenset(
    t for t in TokenType if TokenType.SIN.value <= t.value <= TokenType.POW.value
)

COMPARISON_TOKENS = frozenset(
    {
        TokenType.EQ,
        TokenType.NE,
        TokenType.LT,
        TokenType.LE,
        TokenType.GT,
        TokenType.GE,
    }
)

OPERATOR_SYMBOLS = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.CARET: "^",
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.LT: "<",
    TokenType.LE: "<=",
    TokenType.GT: ">",
    TokenType.GE: ">=",
}


@dataclass(frozen=True)
class Token:
    """A lexed token.

    ``text`` is the exact source substring. For numbers it is what the parser
    converts to an arbitrary-precision value; ``value`` only carries the
    int or float approximation.
    """

    type: TokenType
    text: str = ""
    value: Union[int, float, None] = None
    position: int = 0

    def is_number(self) -> bool:
        return self.type in NUMBER_TOKENS

    def is_function(self) -> bool:
        return self.type in FUNCTION_TOKENS

    def __str__(self) -> str:
        if self.type in (TokenType.EOF, TokenType.INVALID) and not self.text:
            return self.type.name
        return f"{self.type.name}({self.text!r})"
