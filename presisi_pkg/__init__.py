"""Kalkulator Presisi package: arbitrary-precision expression parsing, evaluation and simplification."""

__all__ = [
    "config",
    "tokens",
    "registry",
    "lexer",
    "ast_nodes",
    "parser",
    "precision",
    "evaluator",
    "symbolic",
    "printer",
    "formatter",
    "cli",
    "types",
    "api",
    "logging_config",
]

# Public API exports

__api_exports__ = [
    "parse_and_evaluate",
    "parse_and_simplify",
    "set_precision",
    "evaluate",
    "simplify_expression",
]
