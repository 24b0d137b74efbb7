"""Lexer: turns one line of input into a stream of tokens.

The lexer never raises. Malformed input produces an ``INVALID`` token and it
is up to the parser to report it.
"""

from __future__ import annotations

from typing import Iterator

from . import registry
from .config import MAX_INPUT_LENGTH
from .logging_config import get_logger
from .tokens import Token, TokenType

logger = get_logger("lexer")

_SINGLE_CHAR_TOKENS = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "^": TokenType.CARET,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
}

# first char -> (token alone, token when followed by '='); None means INVALID
_COMPARISON_TOKENS = {
    "=": (None, TokenType.EQ),
    "!": (None, TokenType.NE),
    "<": (TokenType.LT, TokenType.LE),
    ">": (TokenType.GT, TokenType.GE),
}


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


def _is_ident_start(c: str) -> bool:
    return c.isascii() and (c.isalpha() or c == "_")


def _is_ident_char(c: str) -> bool:
    return c.isascii() and (c.isalnum() or c == "_")


class Lexer:
    """Single-pass scanner over an input string.

    Input longer than ``max_length`` characters is treated as empty and
    ``rejected`` is set.
    """

    def __init__(self, text: str, max_length: int | None = None):
        limit = MAX_INPUT_LENGTH if max_length is None else max_length
        self.rejected = text is None or len(text) > limit
        if self.rejected:
            logger.debug("Input rejected: %d characters exceeds limit %d",
                         0 if text is None else len(text), limit)
            text = ""
        self.text = text
        self.pos = 0

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        if index < len(self.text):
            return self.text[index]
        return ""

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def next_token(self) -> Token:
        """Scan and return the next token; EOF is returned repeatedly at the end."""
        self._skip_whitespace()
        start = self.pos
        c = self._peek()

        if not c:
            return Token(TokenType.EOF, "", None, start)

        if _is_digit(c) or c == ".":
            return self._read_number()

        if _is_ident_start(c):
            return self._read_identifier()

        if c in _SINGLE_CHAR_TOKENS:
            self.pos += 1
            return Token(_SINGLE_CHAR_TOKENS[c], c, None, start)

        if c in _COMPARISON_TOKENS:
            alone, with_equals = _COMPARISON_TOKENS[c]
            if self._peek(1) == "=":
                self.pos += 2
                return Token(with_equals, self.text[start : self.pos], None, start)
            self.pos += 1
            if alone is None:
                return Token(TokenType.INVALID, c, None, start)
            return Token(alone, c, None, start)

        self.pos += 1
        return Token(TokenType.INVALID, c, None, start)

    def _read_number(self) -> Token:
        start = self.pos
        has_dot = False
        digit_count = 0

        if self._peek() == "." and not _is_digit(self._peek(1)):
            self.pos += 1
            return Token(TokenType.INVALID, ".", None, start)

        while True:
            c = self._peek()
            if _is_digit(c):
                digit_count += 1
            elif c == ".":
                if has_dot:
                    self.pos += 1
                    return Token(
                        TokenType.INVALID, self.text[start : self.pos], None, start
                    )
                has_dot = True
            else:
                break
            self.pos += 1

        if digit_count == 0:
            return Token(TokenType.INVALID, self.text[start : self.pos], None, start)

        # The exponent is only taken when digits follow; otherwise 'e' is
        # left for the identifier scanner (implicit multiplication by e).
        has_exponent = False
        if self._peek() in ("e", "E"):
            if _is_digit(self._peek(1)):
                self.pos += 1
                has_exponent = True
            elif self._peek(1) in ("+", "-") and _is_digit(self._peek(2)):
                self.pos += 2
                has_exponent = True
            while has_exponent and _is_digit(self._peek()):
                self.pos += 1

        text = self.text[start : self.pos]
        if has_dot or has_exponent:
            return Token(TokenType.FLOAT, text, float(text), start)
        return Token(TokenType.INT, text, int(text), start)

    def _read_identifier(self) -> Token:
        start = self.pos
        while _is_ident_char(self._peek()):
            self.pos += 1
        name = self.text[start : self.pos]
        entry = registry.lookup(name)
        if entry is None:
            return Token(TokenType.IDENTIFIER, name, None, start)
        return Token(entry.token_type, name, None, start)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.type is TokenType.EOF:
                return


def tokenize(text: str, max_length: int | None = None) -> list[Token]:
    """Return every token of ``text``, ending with EOF."""
    return list(Lexer(text, max_length))
