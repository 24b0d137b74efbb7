#!/usr/bin/env python3
"""
Kalkulator Presisi - Arbitrary-Precision Scientific Calculator

Main entry point for the calculator application. This file is a thin
wrapper that delegates all functionality to the presisi_pkg package.

Usage:
    python presisi.py                        # Interactive REPL
    python presisi.py -e "sin(pi/2)"         # Evaluate expression
    python presisi.py -p 1024 -e "pi"        # Evaluate at 1024 bits
    python presisi.py -s "sqrt(8)"           # Simplify symbolically
    python presisi.py --help                 # Show help
"""

from __future__ import annotations

import sys


def main() -> int:
    """
    Main entry point for Kalkulator Presisi.

    Delegates to presisi_pkg.cli, which handles argument parsing,
    evaluation, simplification and output formatting.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    try:
        from presisi_pkg.cli import main_entry

        return main_entry(sys.argv[1:])
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        return 1
    except ImportError as e:
        print(f"Error: Failed to import presisi_pkg: {e}")
        print("Please ensure all dependencies are installed: pip install -e .")
        return 1


if __name__ == "__main__":
    sys.exit(main())
