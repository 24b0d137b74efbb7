"""Recursive-descent parser producing an AST.

Grammar, lowest precedence first::

    comparison := term (("==" | "!=" | "<" | "<=" | ">" | ">=") term)*
    term       := factor (("+" | "-") factor)*
    factor     := power (("*" | "/" | <implicit>) power)*
    power      := unary ("^" power)?
    unary      := ("+" | "-") unary | primary
    primary    := NUMBER | CONSTANT | FUNCTION "(" args ")" | "(" comparison ")"

Errors are raised as ``LexError`` or ``ParseError``; a failed parse never
returns a partial tree.
"""

from __future__ import annotations

import functools

from . import registry
from .ast_nodes import BinOp, Constant, FunctionCall, Node, Number, Unary, tree_depth
from .config import (
    MAX_IMPLICIT_MULTIPLICATIONS,
    MAX_INPUT_LENGTH,
    MAX_PARSE_DEPTH,
    MAX_TREE_DEPTH,
)
from .lexer import Lexer
from .logging_config import get_logger
from .precision import PrecisionContext, get_context
from .tokens import (
    COMPARISON_TOKENS,
    FUNCTION_TOKENS,
    NUMBER_TOKENS,
    Token,
    TokenType,
)
from .types import CalcError, LexError, ParseError

logger = get_logger("parser")


def should_insert_multiplication(previous: Token | None, current: Token) -> bool:
    """Decide whether two adjacent tokens imply a multiplication.

    Matches NUMBER (, ) (, ) NUMBER, NUMBER NUMBER, NUMBER FUNCTION,
    ) FUNCTION, NUMBER CONSTANT, ) CONSTANT, CONSTANT NUMBER and CONSTANT (.
    """
    if previous is None:
        return False
    prev, cur = previous.type, current.type
    cur_is_number = cur in NUMBER_TOKENS
    if prev in NUMBER_TOKENS or prev is TokenType.RPAREN:
        return (
            cur is TokenType.LPAREN
            or cur_is_number
            or cur in FUNCTION_TOKENS
            or cur is TokenType.CONSTANT
        )
    if prev is TokenType.CONSTANT:
        return cur_is_number or cur is TokenType.LPAREN
    return False


def _depth_guarded(method):
    """Count grammar-level recursion and abort past the configured maximum."""

    @functools.wraps(method)
    def wrapper(self):
        self.depth += 1
        try:
            if self.depth > self.max_depth:
                raise self._fail(
                    ParseError(
                        f"Maximum nesting depth ({self.max_depth}) exceeded "
                        f"in {method.__name__.lstrip('_')}",
                        "TOO_DEEP",
                    )
                )
            return method(self)
        finally:
            self.depth -= 1

    return wrapper


def _literal_text(text: str) -> str:
    """Complete literals like '1.' or '.5' so every number parser accepts them."""
    mantissa, sep, exponent = text.replace("E", "e").partition("e")
    if mantissa.startswith("."):
        mantissa = "0" + mantissa
    if mantissa.endswith("."):
        mantissa += "0"
    return mantissa + sep + exponent


class Parser:
    """Parser over one input line.

    Args:
        text: Expression source
        context: Precision context used to build number literals
        max_depth: Maximum grammar recursion depth
        max_implicit: Maximum implicit multiplications per factor chain
        max_tree_depth: Maximum height of the finished tree
    """

    def __init__(
        self,
        text: str,
        context: PrecisionContext | None = None,
        max_depth: int | None = None,
        max_implicit: int | None = None,
        max_tree_depth: int | None = None,
    ):
        self.context = context or get_context()
        self.lexer = Lexer(text)
        self.max_depth = MAX_PARSE_DEPTH if max_depth is None else max_depth
        self.max_implicit = (
            MAX_IMPLICIT_MULTIPLICATIONS if max_implicit is None else max_implicit
        )
        self.max_tree_depth = (
            MAX_TREE_DEPTH if max_tree_depth is None else max_tree_depth
        )
        self.depth = 0
        self.error: CalcError | None = None
        self.previous: Token | None = None
        self.current = self.lexer.next_token()

    def _fail(self, error: CalcError) -> CalcError:
        if self.error is None:
            self.error = error
            logger.debug("Parse failed (%s): %s", error.code, error.message)
        return error

    def _advance(self) -> None:
        self.previous = self.current
        self.current = self.lexer.next_token()

    def _expect(self, token_type: TokenType, message: str, code: str) -> None:
        if self.current.type is not token_type:
            raise self._fail(ParseError(message, code))
        self._advance()

    def parse(self) -> Node:
        """Parse the whole input.

        Returns:
            The root node

        Raises:
            LexError: On an invalid token or oversized input
            ParseError: On any syntax error
        """
        if self.lexer.rejected:
            raise self._fail(
                LexError(
                    f"Input too long (maximum {MAX_INPUT_LENGTH} characters)",
                    "TOO_LONG",
                )
            )
        if self.current.type is TokenType.EOF:
            raise self._fail(ParseError("Empty expression", "EMPTY_INPUT"))

        node = self._comparison()

        if self.current.type is TokenType.INVALID:
            raise self._fail(self._invalid_token_error())
        if self.current.type is not TokenType.EOF:
            code = (
                "UNMATCHED_PAREN"
                if self.current.type is TokenType.RPAREN
                else "UNEXPECTED_TOKEN"
            )
            raise self._fail(
                ParseError(
                    f"Unexpected token at end: {self.current.text!r} "
                    f"(position {self.current.position})",
                    code,
                )
            )

        # Flat chains like 1+1+...+1 loop in the grammar but still build
        # one tree level per operator.
        height = tree_depth(node)
        if height > self.max_tree_depth:
            raise self._fail(
                ParseError(
                    f"Expression too deeply nested ({height} levels, "
                    f"maximum {self.max_tree_depth})",
                    "TOO_DEEP",
                )
            )
        return node

    def _invalid_token_error(self) -> LexError:
        return LexError(
            f"Invalid token {self.current.text!r} at position {self.current.position}"
        )

    @_depth_guarded
    def _comparison(self) -> Node:
        left = self._term()
        while self.current.type in COMPARISON_TOKENS:
            op = self.current.type
            self._advance()
            left = BinOp(op, left, self._term())
        return left

    @_depth_guarded
    def _term(self) -> Node:
        left = self._factor()
        while self.current.type in (TokenType.PLUS, TokenType.MINUS):
            op = self.current.type
            self._advance()
            left = BinOp(op, left, self._factor())
        return left

    @_depth_guarded
    def _factor(self) -> Node:
        left = self._power()
        implicit_count = 0
        while True:
            if self.current.type in (TokenType.STAR, TokenType.SLASH):
                op = self.current.type
                self._advance()
            elif should_insert_multiplication(self.previous, self.current):
                # The current token starts the right operand; nothing is consumed.
                implicit_count += 1
                if implicit_count > self.max_implicit:
                    raise self._fail(
                        ParseError(
                            "Too many implicit multiplications "
                            f"(maximum {self.max_implicit})",
                            "TOO_MANY_IMPLICIT",
                        )
                    )
                op = TokenType.STAR
            else:
                break
            left = BinOp(op, left, self._power())
        return left

    @_depth_guarded
    def _power(self) -> Node:
        base = self._unary()
        if self.current.type is TokenType.CARET:
            self._advance()
            return BinOp(TokenType.CARET, base, self._power())
        return base

    @_depth_guarded
    def _unary(self) -> Node:
        if self.current.type in (TokenType.PLUS, TokenType.MINUS):
            op = self.current.type
            self._advance()
            return Unary(op, self._unary())
        return self._primary()

    @_depth_guarded
    def _primary(self) -> Node:
        token = self.current
        kind = token.type

        if token.is_number():
            self._advance()
            return Number(
                self.context.mpf(_literal_text(token.text)),
                kind is TokenType.INT,
            )

        if kind is TokenType.LPAREN:
            self._advance()
            inner = self._comparison()
            if self.current.type is TokenType.INVALID:
                raise self._fail(self._invalid_token_error())
            self._expect(TokenType.RPAREN, "Expected ')'", "UNMATCHED_PAREN")
            return inner

        if kind is TokenType.CONSTANT:
            self._advance()
            return Constant(registry.lookup(token.text).canonical)

        if token.is_function():
            return self._function_call()

        if kind is TokenType.IDENTIFIER:
            raise self._fail(
                ParseError(
                    f"Unknown function or variable: {token.text}", "UNKNOWN_IDENTIFIER"
                )
            )

        if kind is TokenType.INVALID:
            raise self._fail(self._invalid_token_error())

        if kind is TokenType.EOF:
            raise self._fail(
                ParseError("Unexpected end of input", "UNEXPECTED_TOKEN")
            )

        raise self._fail(
            ParseError(
                f"Unexpected token {token.text!r} at position {token.position}",
                "UNMATCHED_PAREN" if kind is TokenType.RPAREN else "UNEXPECTED_TOKEN",
            )
        )

    def _function_call(self) -> Node:
        token = self.current
        expected = registry.arity(token.type)
        self._advance()
        self._expect(
            TokenType.LPAREN,
            f"Expected '(' after function {token.text}",
            "PARSE_ERROR",
        )

        args: list[Node] = []
        if self.current.type is not TokenType.RPAREN:
            args.append(self._comparison())
            while self.current.type is TokenType.COMMA:
                self._advance()
                args.append(self._comparison())

        if len(args) != expected:
            plural = "argument" if expected == 1 else "arguments"
            raise self._fail(
                ParseError(
                    f"Function {token.text} expects {expected} {plural}, got {len(args)}",
                    "ARITY_MISMATCH",
                )
            )
        if self.current.type is TokenType.INVALID:
            raise self._fail(self._invalid_token_error())
        self._expect(
            TokenType.RPAREN,
            f"Expected ')' after arguments of {token.text}",
            "UNMATCHED_PAREN",
        )
        return FunctionCall(token.type, tuple(args))


def parse(
    text: str,
    context: PrecisionContext | None = None,
    max_depth: int | None = None,
    max_tree_depth: int | None = None,
) -> Node:
    """Parse an expression string into an AST.

    Args:
        text: Expression source (e.g., "2(3+4)", "sin(pi/2)")
        context: Precision context for number literals (default context if None)
        max_depth: Override for the grammar recursion limit
        max_tree_depth: Override for the height limit of the finished tree

    Returns:
        Root node of the tree

    Raises:
        LexError: Invalid character, malformed literal or oversized input
        ParseError: Syntax error, arity mismatch or nesting too deep
    """
    return Parser(text, context, max_depth, max_tree_depth=max_tree_depth).parse()
