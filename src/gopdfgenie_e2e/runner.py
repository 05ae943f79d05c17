"""Submit -> poll -> download orchestration."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable

from .client import GenieClient
from .config import MODES, Settings
from .core import FatalError, log, mask, resolve_output_path

TERMINAL_OK = "COMPLETED"
TERMINAL_FAIL = "FAILED"


def log_banner(settings: Settings) -> None:
    s = settings
    log(
        f"Plan={s.plan}  Mode={s.mode}  Base={s.api_base}  Output={s.output_format} "
        f"Page={s.page_size} Ori={s.orientation} Q={s.quality}"
    )
    if s.api_key is not None:
        log(f"API Key: {mask(s.api_key)}")
    else:
        log("Guest mode (no Authorization header).")
    log(f"Input dir:  {Path(s.in_dir).absolute()}")
    log(f"Output dir: {Path(s.out_dir).absolute()}")
    if s.rapid_secret is not None:
        log("RapidAPI proxy secret provided.")


def poll_until_complete(
    client: GenieClient,
    job_id: str,
    poll_ms: int,
    max_polls: int,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Check the job status every ``poll_ms`` until it completes.

    A FAILED status aborts at once; running out of attempts is a timeout.
    Returns the final status string as reported by the API.
    """
    status = None
    for _ in range(max_polls):
        sleep(poll_ms / 1000.0)
        status = client.get_status(job_id)
        log(f"Status: {status}")
        if status.upper() == TERMINAL_OK:
            return status
        if status.upper() == TERMINAL_FAIL:
            raise FatalError(f"Conversion failed. Job={job_id}")
    raise FatalError(f"Timeout waiting for COMPLETED. Job={job_id}")


def submit(client: GenieClient, settings: Settings) -> str:
    s = settings
    opts = dict(
        output_format=s.output_format,
        page_size=s.page_size,
        orientation=s.orientation,
        quality=s.quality,
    )
    if s.mode == "url":
        log(f"Using URL: {s.url}")
        return client.submit_url(s.url, **opts)
    if s.mode == "upload":
        log(f"Using upload file: {s.upload_path.absolute()}")
        return client.submit_upload(s.upload_path, **opts)
    raise FatalError(f"Unknown --mode={s.mode} (use {'|'.join(MODES)})")


def dry_run(settings: Settings) -> None:
    """Log the requests a real run would send, without sending them."""
    s = settings
    if s.mode not in MODES:
        raise FatalError(f"Unknown --mode={s.mode} (use {'|'.join(MODES)})")
    path = "/convert/url/async" if s.mode == "url" else "/convert/async"
    source = s.url if s.mode == "url" else str(s.upload_path)
    log(f"[DRY  ] would POST {s.api_base}{path} ({source})")
    log(f"[DRY  ] would poll {s.api_base}/jobs/<jobId>/status every {s.poll_ms}ms up to {s.max_polls}x")
    out = resolve_output_path(s.out, s.out_dir, s.output_format)
    log(f"[DRY  ] would GET {s.api_base}/jobs/<jobId>/result -> {out}")


def run(
    settings: Settings,
    client: GenieClient | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Path:
    """Run one end-to-end conversion and return the saved artifact path."""
    if client is None:
        client = GenieClient(settings.api_base, settings.api_key, settings.rapid_secret)
    job_id = submit(client, settings)
    log(f"Job ID: {job_id}")
    poll_until_complete(client, job_id, settings.poll_ms, settings.max_polls, sleep=sleep)
    out = resolve_output_path(settings.out, settings.out_dir, settings.output_format)
    client.download_result(job_id, out)
    log(f"Saved -> {out.absolute()}")
    return out
