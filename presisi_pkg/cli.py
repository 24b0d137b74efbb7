from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, field
from typing import Any

from . import registry
from .api import evaluate, simplify_expression
from .ast_nodes import count_nodes, tree_depth
from .config import (
    DISPLAY_MODE,
    DISPLAY_MODES,
    HISTORY_SIZE,
    LOG_FILE,
    LOG_LEVEL,
    ROUNDING_MODES,
    VERSION,
)
from .formatter import MODE_DESCRIPTIONS, format_value
from .logging_config import LOG_LEVELS, get_logger, setup_logging
from .parser import parse
from .precision import PrecisionContext, get_context
from .printer import format_tree, function_signature
from .types import CalcError

logger = get_logger("cli")

# (expression, expected smart-mode result) pairs used by `test` and --health-check
SELF_TEST_CASES = [
    ("2+3*4", "14"),
    ("2^3^2", "512"),
    ("2(3+4)", "14"),
    ("sin(pi/2)", "1"),
    ("cos(0)", "1"),
    ("sqrt(16)", "4"),
    ("log(e)", "1"),
    ("exp(0)", "1"),
    ("1/4", "0.25"),
    ("pow(2, 10)", "1024"),
    ("abs(-5)", "5"),
    ("floor(2.7) + ceil(2.2)", "5"),
    ("10 > 3", "1"),
    ("2 == 3", "0"),
]


@dataclass
class ReplState:
    """Mutable session settings for the interactive loop."""

    context: PrecisionContext
    mode: str = DISPLAY_MODE
    output_format: str = "human"
    history: list[str] = field(default_factory=list)

    def remember(self, line: str) -> None:
        self.history.append(line)
        if len(self.history) > HISTORY_SIZE:
            del self.history[0]


def run_self_test(context: PrecisionContext | None = None, verbose: bool = True) -> int:
    """Evaluate the built-in test expressions.

    Returns:
        Number of failed cases
    """
    context = context or get_context()
    failures = 0
    for expression, expected in SELF_TEST_CASES:
        res = evaluate(expression, mode="smart", context=context)
        passed = res.ok and res.warning is None and res.result == expected
        if not passed:
            failures += 1
        if verbose:
            status = "OK" if passed else "FAIL"
            shown = res.result if res.ok else f"error: {res.error}"
            print(f"[{status}] {expression} = {shown} (expected {expected})")
    if verbose:
        print(f"{len(SELF_TEST_CASES) - failures}/{len(SELF_TEST_CASES)} passed")
    return failures


def _health_check() -> int:
    """Run health check to verify dependencies and basic operations.

    Returns:
        Exit code (0 for success, non-zero for failures)
    """
    checks_passed = 0
    checks_failed = 0

    print("Running Kalkulator Presisi health check...")
    print("-" * 50)

    try:
        import mpmath

        print(f"[OK] mpmath {mpmath.__version__} imported successfully")
        checks_passed += 1
    except ImportError as e:
        print(f"[FAIL] mpmath import failed: {e}")
        checks_failed += 1

    try:
        import sympy as sp

        print(f"[OK] SymPy {sp.__version__} imported successfully")
        checks_passed += 1
    except ImportError as e:
        print(f"[FAIL] SymPy import failed: {e}")
        checks_failed += 1

    try:
        context = get_context().copy()
        failures = run_self_test(context, verbose=False)
        if failures == 0:
            print(f"[OK] Evaluation self-test ({len(SELF_TEST_CASES)} cases)")
            checks_passed += 1
        else:
            print(f"[FAIL] Evaluation self-test: {failures} case(s) failed")
            checks_failed += 1
    except Exception as e:
        print(f"[FAIL] Evaluation check failed: {e}")
        checks_failed += 1

    try:
        import sympy as sp

        from .printer import to_sympy

        res = simplify_expression("sqrt(8)")
        original = to_sympy(parse("sqrt(8)"))
        if res.ok and res.result == "2 * sqrt(2)" and sp.simplify(
            to_sympy(res.tree) - original
        ) == 0:
            print("[OK] Symbolic simplification agrees with SymPy")
            checks_passed += 1
        else:
            print(f"[FAIL] Simplification check failed: {res}")
            checks_failed += 1
    except Exception as e:
        print(f"[FAIL] Simplification check failed: {e}")
        checks_failed += 1

    try:
        import sympy as sp

        context = PrecisionContext(256)
        digits = context.decimal_digits() - 2
        ours = context.mp.nstr(context.constant_value("pi"), digits)
        reference = str(sp.N(sp.pi, digits))
        if ours[:digits] == reference[:digits]:
            print(f"[OK] pi agrees with SymPy to {digits} digits at 256 bits")
            checks_passed += 1
        else:
            print(f"[FAIL] pi mismatch: {ours} vs {reference}")
            checks_failed += 1
    except Exception as e:
        print(f"[FAIL] Constant check failed: {e}")
        checks_failed += 1

    print("-" * 50)
    print(f"Results: {checks_passed} passed, {checks_failed} failed")

    if checks_failed > 0:
        print("\n[WARN] Some health checks failed. Core functionality may be impaired.")
        return 1

    print("\n[OK] All health checks passed!")
    return 0


def print_result_pretty(res: dict[str, Any], output_format: str = "human") -> None:
    """Print result in specified format.

    Args:
        res: Result dictionary
        output_format: "json" for JSON output, "human" for human-readable
    """
    if output_format == "json":
        print(json.dumps(res, indent=2, ensure_ascii=False))
        return
    if not res.get("ok"):
        print("Error:", res.get("error"))
        return
    try:
        print(res.get("result"))
    except UnicodeEncodeError:
        # Console without UTF-8 support (pretty mode symbols)
        print(str(res.get("result")).encode("ascii", "replace").decode("ascii"))
    if res.get("warning"):
        print("Warning:", res.get("warning"))


def print_help_text() -> None:
    """Print help text for REPL commands."""
    functions = ", ".join(
        function_signature(name) for name in registry.function_names()
    )
    constants = ", ".join(registry.constant_names())
    help_text = f"""Kalkulator Presisi version {VERSION}

Expressions:
  2+3*4, 2^3^2, 2(3+4), sin(pi/2), sqrt(2), 1/3 < 0.34
  Implicit multiplication: 2pi, 3(4+5), (1+2)(3+4), 2sin(1)
  Functions: {functions}
  Aliases: ln, arcsin, arccos, arctan, arctan2, arcsinh, arccosh, arctanh
  Constants: {constants} (upper-case spellings accepted)

Commands:
  precision [bits]     show or set precision ({get_context().precision} bits now)
  rounding [mode]      show or set rounding ({", ".join(ROUNDING_MODES)})
  strict [on|off]      domain errors give NaN instead of 0
  mode [name]          show or set display mode ({", ".join(DISPLAY_MODES)})
  scientific, normal   shortcuts for mode scientific / mode smart
  simplify EXPR        symbolic simplification
  ast EXPR             show the parse tree
  constants            list constants at the current precision
  history, clear       show or clear evaluated expressions
  test                 run the built-in self test
  version, help, quit
"""
    print(help_text)


def _set_precision_command(state: ReplState, arg: str) -> None:
    if not arg:
        print(
            f"Precision: {state.context.precision} bits "
            f"(~{state.context.decimal_digits()} decimal digits)"
        )
        return
    try:
        bits = int(arg)
    except ValueError:
        print("Error: precision must be an integer number of bits")
        return
    state.context.precision = bits
    print(
        f"Precision set to {state.context.precision} bits "
        f"(~{state.context.decimal_digits()} decimal digits)"
    )


def _set_rounding_command(state: ReplState, arg: str) -> None:
    if not arg:
        print(f"Rounding: {state.context.rounding_name}")
        return
    try:
        state.context.rounding = arg
    except ValueError as e:
        print(f"Error: {e}")
        return
    print(f"Rounding set to {state.context.rounding_name}")


def _set_strict_command(state: ReplState, arg: str) -> None:
    value = arg.lower()
    if value in ("on", "true", "1"):
        state.context.strict = True
    elif value in ("off", "false", "0"):
        state.context.strict = False
    elif not value:
        state.context.strict = not state.context.strict
    else:
        print("Error: use 'strict on' or 'strict off'")
        return
    print(f"Strict mode {'on' if state.context.strict else 'off'}")


def _set_mode_command(state: ReplState, arg: str) -> None:
    value = arg.lower()
    if value == "normal":
        value = "smart"
    if not value:
        print(f"Current display mode: {MODE_DESCRIPTIONS[state.mode]}")
        return
    if value not in DISPLAY_MODES:
        print(f"Error: unknown mode {arg!r}; choose one of {', '.join(DISPLAY_MODES)}")
        return
    state.mode = value
    print(f"Display mode: {MODE_DESCRIPTIONS[value]}")


def _show_constants(state: ReplState) -> None:
    for name in registry.constant_names():
        value = state.context.constant_value(name)
        shown = format_value(value, state.context, state.mode)
        print(f"{name:<6} = {shown}  ({registry.CONSTANT_DESCRIPTIONS[name]})")


def _show_ast(state: ReplState, arg: str) -> None:
    try:
        tree = parse(arg, state.context)
    except CalcError as e:
        print("Error:", e)
        return
    print(format_tree(tree, state.context))
    print(f"({count_nodes(tree)} nodes, depth {tree_depth(tree)})")


def _evaluate_line(state: ReplState, line: str) -> None:
    res = evaluate(line, mode=state.mode, context=state.context)
    if res.ok:
        state.remember(line)
    print_result_pretty(res.to_dict(), state.output_format)


def handle_line(state: ReplState, line: str) -> bool:
    """Run one REPL line (command or expression).

    Returns:
        False when the session should end
    """
    parts = line.split(None, 1)
    command = parts[0].lower()
    arg = parts[1].strip() if len(parts) > 1 else ""

    if command in ("quit", "exit"):
        return False
    if command == "help":
        print_help_text()
    elif command == "precision":
        _set_precision_command(state, arg)
    elif command == "rounding":
        _set_rounding_command(state, arg)
    elif command == "strict":
        _set_strict_command(state, arg)
    elif command == "mode":
        _set_mode_command(state, arg)
    elif command == "scientific" and not arg:
        _set_mode_command(state, "scientific")
    elif command == "normal" and not arg:
        _set_mode_command(state, "smart")
    elif command == "simplify" and arg:
        res = simplify_expression(arg, state.context)
        print_result_pretty(res.to_dict(), state.output_format)
    elif command == "ast" and arg:
        _show_ast(state, arg)
    elif command == "constants" and not arg:
        _show_constants(state)
    elif command == "history" and not arg:
        if not state.history:
            print("History is empty.")
        for index, entry in enumerate(state.history, 1):
            print(f"{index:3d}  {entry}")
    elif command == "clear" and not arg:
        state.history.clear()
        print("History cleared.")
    elif command == "test" and not arg:
        run_self_test(state.context)
    elif command == "version" and not arg:
        print(VERSION)
    else:
        _evaluate_line(state, line)
    return True


def repl_loop(state: ReplState) -> None:
    """Interactive REPL loop with graceful interrupt handling."""
    try:
        import readline  # noqa: F401
    except ImportError:
        # readline not available on Windows - that's fine
        pass

    print("Kalkulator Presisi - type 'help' for commands, 'quit' to exit.")
    print(f"Precision: {state.context.precision} bits")
    while True:
        try:
            raw = input(">>> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye.")
            break
        if not raw:
            continue
        try:
            if not handle_line(state, raw):
                print("Goodbye.")
                break
        except CalcError as e:
            print("Error:", e)


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for the Kalkulator Presisi CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = argparse.ArgumentParser(prog="presisi")
    parser.add_argument(
        "-e",
        "--eval",
        type=str,
        help="Evaluate one expression and exit (non-interactive)",
        dest="eval_expr",
    )
    parser.add_argument(
        "-s",
        "--simplify",
        type=str,
        help="Simplify one expression symbolically and exit",
        dest="simplify_expr",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument(
        "-p", "--precision", type=int, help="Working precision in bits (2-8192)"
    )
    parser.add_argument(
        "--rounding",
        type=str,
        choices=list(ROUNDING_MODES),
        help="Rounding mode for results",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Domain errors yield NaN instead of 0",
    )
    parser.add_argument(
        "--mode",
        type=str,
        choices=list(DISPLAY_MODES),
        default=DISPLAY_MODE,
        help="Number display mode",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Use mathematical symbols in simplified output",
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="Show program version"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=list(LOG_LEVELS),
        default=LOG_LEVEL,
        help="Set logging level (default from PRESISI_LOG_LEVEL)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=LOG_FILE,
        help="Write logs to file (default from PRESISI_LOG_FILE)",
    )
    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Run health check and verify dependencies",
    )
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=args.log_file)

    context = get_context()
    if args.precision is not None:
        context.precision = args.precision
    if args.rounding:
        context.rounding = args.rounding
    if args.strict:
        context.strict = True
    logger.debug("Using %r", context)

    if args.version:
        print(VERSION)
        return 0

    if args.health_check:
        return _health_check()

    if args.eval_expr is not None:
        expr = args.eval_expr.strip()
        # Remove ">>>" prompt if present
        if expr.startswith(">>>"):
            expr = expr[3:].strip()
        res = evaluate(expr, mode=args.mode, context=context)
        print_result_pretty(res.to_dict(), output_format=args.format)
        return 0 if res.ok else 1

    if args.simplify_expr is not None:
        res = simplify_expression(args.simplify_expr.strip(), context, args.pretty)
        print_result_pretty(res.to_dict(), output_format=args.format)
        return 0 if res.ok else 1

    repl_loop(ReplState(context=context, mode=args.mode, output_format=args.format))
    return 0


if __name__ == "__main__":
    sys.exit(main_entry())
