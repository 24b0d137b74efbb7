"""Function and constant registry.

Maps every name the lexer accepts to its token type and arity. Constants use
arity -1 and share the ``CONSTANT`` token type; their canonical (lower-case)
name is what ``Constant`` nodes carry.
"""

from __future__ import annotations

from dataclasses import dataclass

from .tokens import TokenType

CONSTANT_ARITY = -1


@dataclass(frozen=True)
class RegistryEntry:
    name: str
    token_type: TokenType
    arity: int
    canonical: str

    @property
    def is_constant(self) -> bool:
        return self.arity == CONSTANT_ARITY


# (canonical name, token type, arity, aliases)
_FUNCTIONS = [
    ("sin", TokenType.SIN, 1, ()),
    ("cos", TokenType.COS, 1, ()),
    ("tan", TokenType.TAN, 1, ()),
    ("asin", TokenType.ASIN, 1, ("arcsin",)),
    ("acos", TokenType.ACOS, 1, ("arccos",)),
    ("atan", TokenType.ATAN, 1, ("arctan",)),
    ("atan2", TokenType.ATAN2, 2, ("arctan2",)),
    ("sinh", TokenType.SINH, 1, ()),
    ("cosh", TokenType.COSH, 1, ()),
    ("tanh", TokenType.TANH, 1, ()),
    ("asinh", TokenType.ASINH, 1, ("arcsinh",)),
    ("acosh", TokenType.ACOSH, 1, ("arccosh",)),
    ("atanh", TokenType.ATANH, 1, ("arctanh",)),
    ("sqrt", TokenType.SQRT, 1, ()),
    ("log", TokenType.LOG, 1, ("ln",)),
    ("log10", TokenType.LOG10, 1, ()),
    ("exp", TokenType.EXP, 1, ()),
    ("abs", TokenType.ABS, 1, ()),
    ("floor", TokenType.FLOOR, 1, ()),
    ("ceil", TokenType.CEIL, 1, ()),
    ("pow", TokenType.POW, 2, ()),
]

# (canonical name, description, aliases)
_CONSTANTS = [
    ("pi", "ratio of a circle's circumference to its diameter", ("PI",)),
    ("e", "base of the natural logarithm", ("E",)),
    ("ln2", "natural logarithm of 2", ("LN2",)),
    ("ln10", "natural logarithm of 10", ("LN10",)),
    ("gamma", "Euler-Mascheroni constant", ("GAMMA",)),
    ("sqrt2", "square root of 2", ("SQRT2",)),
]

CONSTANT_DESCRIPTIONS = {name: description for name, description, _ in _CONSTANTS}


def _build_table() -> dict[str, RegistryEntry]:
    table: dict[str, RegistryEntry] = {}
    for canonical, token_type, arity, aliases in _FUNCTIONS:
        for name in (canonical, *aliases):
            table[name] = RegistryEntry(name, token_type, arity, canonical)
    for canonical, _description, aliases in _CONSTANTS:
        for name in (canonical, *aliases):
            table[name] = RegistryEntry(
                name, TokenType.CONSTANT, CONSTANT_ARITY, canonical
            )
    return table


_TABLE = _build_table()

_FUNCTION_NAMES = {token_type: canonical for canonical, token_type, _, _ in _FUNCTIONS}
_FUNCTION_ARITY = {token_type: arity for _, token_type, arity, _ in _FUNCTIONS}


def lookup(name: str) -> RegistryEntry | None:
    """Look up a function or constant name (case-sensitive)."""
    return _TABLE.get(name)


def arity(token_type: TokenType) -> int:
    """Return the arity of a function token type, or -1 if it is not a function."""
    return _FUNCTION_ARITY.get(token_type, CONSTANT_ARITY)


def function_name(token_type: TokenType) -> str:
    """Canonical name of a function token type."""
    try:
        return _FUNCTION_NAMES[token_type]
    except KeyError:
        raise ValueError(f"{token_type.name} is not a function token") from None


def is_function(name: str) -> bool:
    entry = _TABLE.get(name)
    return entry is not None and not entry.is_constant


def is_constant(name: str) -> bool:
    entry = _TABLE.get(name)
    return entry is not None and entry.is_constant


def constant_names() -> list[str]:
    """Canonical names of all registered constants."""
    return [name for name, _, _ in _CONSTANTS]


def function_names() -> list[str]:
    """Canonical names of all registered functions."""
    return [name for name, _, _, _ in _FUNCTIONS]

