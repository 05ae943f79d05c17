"""Shared helpers for gopdfgenie-e2e.

Holds the line logger, the fatal error type used for every pass/fail exit,
and the small pure helpers (JSON field lookup, output paths, content types,
key masking) used by the client and the runner.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any

_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50}
_LOG_LEVEL_NAME = os.environ.get("GOPDFGENIE_E2E_LOG_LEVEL", "INFO").upper()
LOG_LEVEL = _LEVELS.get(_LOG_LEVEL_NAME, 20)
LOG_FILE = os.environ.get("GOPDFGENIE_E2E_LOG_FILE")

PLACEHOLDER_PREFIX = "PASTE_"


class FatalError(RuntimeError):
    """Any condition that ends the run with exit code 2."""


def set_log_config(*, log_level: str | None = None, log_file: str | None = None) -> None:
    """Override the logging threshold and mirror file in memory."""
    global LOG_LEVEL, LOG_FILE
    if log_level is not None:
        lvl = _LEVELS.get(str(log_level).upper())
        if lvl is not None:
            LOG_LEVEL = lvl
    if log_file is not None:
        LOG_FILE = log_file


def _maybe_rotate_log_file(path: Path, max_bytes: int = 1_000_000) -> None:
    try:
        if path.exists() and path.stat().st_size > max_bytes:
            backup = path.with_suffix(path.suffix + ".1")
            backup.unlink(missing_ok=True)
            path.replace(backup)
    except OSError:
        pass


def log(msg: str, level: str = "INFO") -> None:
    """Print a single-line message at a given level if above threshold.

    ERROR and CRITICAL lines go to stderr, everything else to stdout. When
    LOG_FILE is set the line is appended there as well.
    """
    lv = _LEVELS.get(str(level).upper(), 20)
    if lv < LOG_LEVEL:
        return
    stream = sys.stderr if lv >= _LEVELS["ERROR"] else sys.stdout
    print(msg, file=stream, flush=True)
    if LOG_FILE:
        p = Path(LOG_FILE)
        _maybe_rotate_log_file(p)
        try:
            with p.open("a", encoding="utf-8") as fh:
                fh.write(msg + "\n")
        except OSError:
            pass


def is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def _find_key(node: Any, key: str) -> Any:
    if isinstance(node, dict):
        if key in node:
            return node[key]
        children = node.values()
    elif isinstance(node, list):
        children = node
    else:
        return None
    for child in children:
        found = _find_key(child, key)
        if found is not None:
            return found
    return None


def json_get(body: str | bytes | None, key: str) -> str | None:
    """Return the value of ``key`` from a JSON response body as text.

    The top-level object is checked first, then nested objects and arrays in
    document order. Strings come back verbatim, numbers exactly as written
    and booleans as JSON text. Missing keys, ``null``, containers and
    unparsable bodies give None.
    """
    if not body:
        return None
    try:
        doc = json.loads(body, parse_int=str, parse_float=str)
    except ValueError:
        return None
    value = _find_key(doc, key)
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


def infer_content_type(path: str | Path) -> str:
    """Content type for an upload, by file extension."""
    name = Path(path).name.lower()
    if name.endswith(".zip"):
        return "application/zip"
    if name.endswith((".html", ".htm")):
        return "text/html; charset=utf-8"
    return "application/octet-stream"


def default_output_name(output_format: str) -> str:
    return "output.png" if str(output_format).lower() == "png" else "output.pdf"


def resolve_output_path(out: str | None, out_dir: str | Path, output_format: str) -> Path:
    """Where the downloaded artifact goes.

    An explicit name that is absolute or carries a directory is used as-is;
    a bare name (explicit or derived from the format) lands in ``out_dir``.
    """
    name = str(out) if not is_blank(out) else default_output_name(output_format)
    p = Path(name)
    if p.is_absolute() or "/" in name or os.sep in name:
        return p
    return Path(out_dir) / p


def mask(secret: str | None) -> str:
    """Mask a credential for display: first and last 4 chars for long keys."""
    if secret is None or len(secret) < 8:
        return "****"
    return secret[:4] + "****" + secret[-4:]
