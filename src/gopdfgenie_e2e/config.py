"""Run configuration for gopdfgenie-e2e.

Config files may be TOML (.toml), YAML (.yml/.yaml) or JSON (.json). Keys
are normalized to lowercase snake case, so ``apiBase``, ``api-base`` and
``api_base`` all name the same option. CLI values win over the file, the
file wins over the defaults below.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping

from .core import PLACEHOLDER_PREFIX, is_blank

# Plan keys; paste real keys here or pass --apiKey / a config file [keys] table.
KEY_FREE = ""
KEY_STARTER = ""
KEY_BUSINESS = ""
KEY_GUEST = ""  # guest never sends a token

RAPIDAPI_PROXY_SECRET = ""

PLANS = ("FREE", "STARTER", "BUSINESS", "GUEST")
MODES = ("url", "upload")

DEFAULT_API_BASE = "https://gopdfgenie.com/api/v1"
DEFAULT_URL = "https://www.youtube.com"
DEFAULT_INPUT_DIR = "./input"
DEFAULT_OUTPUT_DIR = "./output"

DEFAULTS: Dict[str, Any] = {
    "plan": "FREE",
    "mode": "url",
    "api_base": DEFAULT_API_BASE,
    "output_format": "pdf",
    "page_size": "A4",
    "orientation": "portrait",
    "quality": "STANDARD",
    "poll_ms": 2000,
    "max_polls": 60,
    "in_dir": DEFAULT_INPUT_DIR,
    "out_dir": DEFAULT_OUTPUT_DIR,
    "url": DEFAULT_URL,
}


def _norm_key(key: str) -> str:
    key = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", key)
    return key.replace("-", "_").lower()


def _normalize(d: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in d.items():
        nk = _norm_key(str(k))
        if isinstance(v, dict):
            out[nk] = _normalize(v)
        else:
            out[nk] = v
    return out


def load_config_file(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    suf = p.suffix.lower()
    if suf == ".toml":
        import tomllib

        data = tomllib.loads(p.read_text(encoding="utf-8"))
        return _normalize(data)
    if suf in {".yml", ".yaml"}:
        try:
            import yaml  # type: ignore[import-untyped]
        except ImportError as e:  # pragma: no cover - optional dep
            raise RuntimeError("PyYAML is required to read YAML config files") from e
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError("YAML config must be a mapping at the top level")
        return _normalize(data)
    if suf == ".json":
        data = json.loads(p.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("JSON config must be an object at the top level")
        return _normalize(data)
    raise ValueError(f"Unsupported config extension: {suf}")


@dataclass(frozen=True)
class Settings:
    """Fully resolved options for one run."""

    plan: str
    mode: str
    api_base: str
    output_format: str
    page_size: str
    orientation: str
    quality: str
    poll_ms: int
    max_polls: int
    in_dir: str
    out_dir: str
    api_key: str | None = None
    rapid_secret: str | None = None
    url: str = DEFAULT_URL
    file: str | None = None
    out: str | None = None

    @property
    def guest(self) -> bool:
        return self.api_key is None

    @property
    def upload_path(self) -> Path:
        if not is_blank(self.file):
            return Path(str(self.file))
        return Path(self.in_dir) / "index.html"


def key_for_plan(plan: str, keys: Mapping[str, Any] | None = None) -> str:
    """Return the configured key for a plan; unknown plans have none."""
    plan = plan.upper()
    if plan not in PLANS:
        return ""
    if keys and keys.get(plan.lower()) is not None:
        return str(keys[plan.lower()])
    return {
        "FREE": KEY_FREE,
        "STARTER": KEY_STARTER,
        "BUSINESS": KEY_BUSINESS,
        "GUEST": KEY_GUEST,
    }[plan]


def resolve_settings(
    cli: Mapping[str, Any] | None = None, cfg: Mapping[str, Any] | None = None
) -> Settings:
    """Merge CLI values over config-file values over defaults.

    ``cli`` holds only the options actually given on the command line. A
    blank or placeholder key downgrades the run to guest mode.
    """
    cli = {k: v for k, v in (cli or {}).items() if v is not None}
    cfg = dict(cfg or {})

    def pick(name: str) -> Any:
        if name in cli:
            return cli[name]
        if cfg.get(name) is not None:
            return cfg[name]
        return DEFAULTS.get(name)

    plan = str(pick("plan")).upper()
    keys = cfg.get("keys") if isinstance(cfg.get("keys"), dict) else None

    api_key = pick("api_key")
    if api_key is not None:
        api_key = str(api_key)
    if is_blank(api_key):
        api_key = key_for_plan(plan, keys)
    api_key = str(api_key)
    if is_blank(api_key) or api_key.startswith(PLACEHOLDER_PREFIX):
        plan = "GUEST"
        api_key = None

    rapid_secret = pick("rapid_secret")
    if rapid_secret is None:
        rapid_secret = RAPIDAPI_PROXY_SECRET
    rapid_secret = str(rapid_secret)
    if is_blank(rapid_secret):
        rapid_secret = None

    poll_ms = int(pick("poll_ms"))
    if poll_ms < 0:
        raise ValueError(f"poll interval must not be negative: {poll_ms}ms")

    return Settings(
        plan=plan,
        mode=str(pick("mode")).lower(),
        api_base=str(pick("api_base")).rstrip("/"),
        output_format=str(pick("output_format")),
        page_size=str(pick("page_size")),
        orientation=str(pick("orientation")),
        quality=str(pick("quality")),
        poll_ms=poll_ms,
        max_polls=int(pick("max_polls")),
        in_dir=str(pick("in_dir")),
        out_dir=str(pick("out_dir")),
        api_key=api_key,
        rapid_secret=rapid_secret,
        url=str(pick("url")),
        file=None if pick("file") is None else str(pick("file")),
        out=None if pick("out") is None else str(pick("out")),
    )
