"""Argparse-based command-line interface for gopdfgenie-e2e.

Invoked via the console script `gopdfgenie-e2e` or as a module with
`python -m gopdfgenie_e2e`. Options use the `--name=value` form; anything
the parser does not know is ignored.
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys

from . import __version__
from .config import resolve_settings
from .core import FatalError, log, set_log_config
from .runner import dry_run, log_banner, run

# (flag, dest, type, help) for the API options; dests match config-file keys.
_API_OPTIONS = [
    ("--plan", "plan", str, "FREE|STARTER|BUSINESS|GUEST"),
    ("--mode", "mode", str, "url|upload"),
    ("--apiBase", "api_base", str, "API base URL"),
    ("--outputFormat", "output_format", str, "pdf|png"),
    ("--pageSize", "page_size", str, "Long|A4|A5|Letter|Legal|Tabloid"),
    ("--orientation", "orientation", str, "portrait|landscape"),
    ("--quality", "quality", str, "STANDARD|LOW|MEDIUM|HIGH"),
    ("--pollMs", "poll_ms", int, "Delay before each status check (ms)"),
    ("--maxPolls", "max_polls", int, "Maximum number of status checks"),
    ("--inDir", "in_dir", str, "Input directory (upload default: <inDir>/index.html)"),
    ("--outDir", "out_dir", str, "Output directory for bare --out names"),
    ("--apiKey", "api_key", str, "Bearer key; overrides the plan key"),
    ("--rapidSecret", "rapid_secret", str, "X-RapidAPI-Proxy-Secret value"),
    ("--file", "file", str, "File to upload in upload mode"),
    ("--url", "url", str, "Page to convert in url mode"),
    ("--out", "out", str, "Output file name or path"),
]

_API_FLAGS = {flag for flag, _dest, _typ, _help in _API_OPTIONS}


def _drop_bare_api_flags(argv: list[str]) -> list[str]:
    """Keep API options only in `--name=value` form.

    A bare `--url` or a space-separated `--out foo.pdf` is ignored; the
    orphaned value then falls through as an unknown positional.
    """
    return [a for a in argv if a not in _API_FLAGS]


def _compute_version() -> str:
    """Return a version string, optionally with git metadata if available."""
    base = f"gopdfgenie-e2e {__version__}"
    try:
        git_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", ".git"))
        if not os.path.isdir(git_dir):
            return base
        sha = (
            subprocess.check_output(["git", "rev-parse", "--short", "HEAD"], stderr=subprocess.DEVNULL)
            .decode()
            .strip()
        )
        return f"{base} (git {sha})"
    except (OSError, subprocess.SubprocessError):
        return base


def build_parser() -> argparse.ArgumentParser:
    """Create and return the CLI argument parser."""
    p = argparse.ArgumentParser(prog="gopdfgenie-e2e", add_help=True, allow_abbrev=False)
    for flag, dest, typ, help_text in _API_OPTIONS:
        p.add_argument(flag, dest=dest, type=typ, help=help_text)
    p.add_argument(
        "-C",
        "--config",
        dest="config",
        help="Path to a config file (.toml/.yaml/.yml/.json)",
    )
    p.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Log the requests that would be sent; touch nothing",
    )
    p.add_argument(
        "-L",
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Standard logging level threshold",
    )
    p.add_argument("-q", "--quiet", action="store_true", help="Set log level to ERROR (overridden by --log-level)")
    p.add_argument("-v", "--verbose", action="store_true", help="Set log level to DEBUG (overridden by --log-level)")
    p.add_argument("--log-file", help="Append logs to a file (1MB simple rotation)")
    p.add_argument(
        "-V",
        "--version",
        action="version",
        version=_compute_version(),
        help="Show version and exit",
    )
    return p


def parse_cli_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse known options and silently ignore everything else."""
    args = sys.argv[1:] if argv is None else list(argv)
    ns, _unknown = build_parser().parse_known_args(_drop_bare_api_flags(args))
    return ns


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns 0 on success and 2 on any fatal condition."""
    ns = parse_cli_args(argv)

    cfg: dict[str, object] = {}
    if ns.config:
        from .config import load_config_file

        try:
            cfg = load_config_file(ns.config)
        except Exception as e:  # I/O/parsing
            log(f"[ERROR] config load failed: {e!r}", level="ERROR")
            return 2

    log_level = ns.log_level
    if log_level is None and ns.quiet:
        log_level = "ERROR"
    elif log_level is None and ns.verbose:
        log_level = "DEBUG"
    elif log_level is None and cfg.get("log_level"):
        log_level = str(cfg.get("log_level")).upper()
    set_log_config(
        log_level=log_level,
        log_file=ns.log_file if ns.log_file else (str(cfg["log_file"]) if cfg.get("log_file") else None),
    )

    cli_values = {dest: getattr(ns, dest) for _flag, dest, _typ, _help in _API_OPTIONS}
    try:
        settings = resolve_settings(cli_values, cfg)
    except (TypeError, ValueError) as e:
        log(f"[ERROR] invalid configuration: {e}", level="ERROR")
        return 2

    try:
        log_banner(settings)
        if ns.dry_run or cfg.get("dry_run"):
            dry_run(settings)
            return 0
        run(settings)
    except FatalError as e:
        log(str(e), level="ERROR")
        return 2
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
