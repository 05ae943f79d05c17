"""Module entry point for `python -m gopdfgenie_e2e` and frozen binaries.

Use absolute imports so freezing (PyInstaller) works without package context.
"""

from gopdfgenie_e2e.cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
