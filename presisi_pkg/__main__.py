"""Main entry point for running presisi_pkg as a module.

This allows running Kalkulator Presisi with:
    python -m presisi_pkg
    python -m presisi_pkg --health-check
    python -m presisi_pkg -e "2+2"

This is equivalent to running:
    python -m presisi_pkg.cli
    python presisi.py
"""

from __future__ import annotations

import sys

from .cli import main_entry

if __name__ == "__main__":
    sys.exit(main_entry())
