"""
Entry file to run the gopdfgenie-e2e tester directly from a source checkout.

Usage:
  python main.py --plan=STARTER --mode=upload --file=./input/site.zip

This shim makes the local `src/` package importable without installation.
"""

from __future__ import annotations

import sys
from pathlib import Path


def _ensure_src_on_path() -> None:
    root = Path(__file__).resolve().parent
    src = root / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))


def main() -> int:  # pragma: no cover - thin wrapper
    _ensure_src_on_path()
    from gopdfgenie_e2e.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
