"""HTTP calls against the GoPDFGenie conversion API.

Four endpoints are used, all relative to the configured base URL:

- ``POST /convert/url/async``  submit a URL job (JSON body)
- ``POST /convert/async``      submit an upload job (multipart, one ``file`` part)
- ``GET  /jobs/{jobId}/status``
- ``GET  /jobs/{jobId}/result``
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from urllib.parse import quote

import requests

from .core import FatalError, infer_content_type, is_blank, json_get, log

CONNECT_TIMEOUT = 20
SUBMIT_URL_TIMEOUT = 30
SUBMIT_UPLOAD_TIMEOUT = 60
STATUS_TIMEOUT = 20
DOWNLOAD_TIMEOUT = 60


def _must_2xx(resp: requests.Response, label: str) -> None:
    s = resp.status_code
    if s < 200 or s >= 300:
        raise FatalError(f"{label} failed: HTTP {s} {resp.text or ''}")


class GenieClient:
    """Thin wrapper over a ``requests.Session`` carrying the plan credentials."""

    def __init__(
        self,
        api_base: str,
        api_key: str | None = None,
        rapid_secret: str | None = None,
        session: Any | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.api_key = api_key
        self.rapid_secret = rapid_secret
        self.session = session if session is not None else requests.Session()

    def headers(self) -> dict[str, str]:
        h: dict[str, str] = {}
        if not is_blank(self.api_key):
            h["Authorization"] = f"Bearer {self.api_key}"
        if not is_blank(self.rapid_secret):
            h["X-RapidAPI-Proxy-Secret"] = str(self.rapid_secret)
        return h

    def _request(self, method: str, path: str, label: str, read_timeout: int, **kwargs: Any):
        url = self.api_base + path
        headers = self.headers()
        headers.update(kwargs.pop("headers", {}))
        log(f"[http ] {method} {url}", level="DEBUG")
        try:
            resp = self.session.request(
                method, url, headers=headers, timeout=(CONNECT_TIMEOUT, read_timeout), **kwargs
            )
        except requests.RequestException as e:
            raise FatalError(f"{label} request failed: {e!r}") from e
        log(f"[http ] {method} {url} -> {resp.status_code}", level="DEBUG")
        return resp

    @staticmethod
    def _conversion_params(
        output_format: str, page_size: str, orientation: str, quality: str
    ) -> dict[str, str]:
        return {
            "orientation": orientation,
            "outputFormat": output_format,
            "pageSize": page_size,
            "quality": quality,
        }

    @staticmethod
    def _job_id(resp: requests.Response) -> str:
        job_id = json_get(resp.text, "jobId")
        if job_id is None:
            raise FatalError(f"No jobId in response: {resp.text}")
        return job_id

    def submit_url(
        self,
        target_url: str,
        output_format: str = "pdf",
        page_size: str = "A4",
        orientation: str = "portrait",
        quality: str = "STANDARD",
    ) -> str:
        """Submit a URL conversion job and return its job id."""
        resp = self._request(
            "POST",
            "/convert/url/async",
            "Submit URL",
            SUBMIT_URL_TIMEOUT,
            params=self._conversion_params(output_format, page_size, orientation, quality),
            json={"url": target_url},
            headers={"Content-Type": "application/json"},
        )
        _must_2xx(resp, "Submit URL")
        return self._job_id(resp)

    def submit_upload(
        self,
        path: str | Path,
        output_format: str = "pdf",
        page_size: str = "A4",
        orientation: str = "portrait",
        quality: str = "STANDARD",
    ) -> str:
        """Upload a local file (HTML or a zipped site) and return the job id."""
        p = Path(path)
        if not p.is_file():
            raise FatalError(f"File not found: {p}")
        try:
            data = p.read_bytes()
        except OSError as e:
            raise FatalError(f"Cannot read upload file {p}: {e}") from e
        files = {"file": (p.name, data, infer_content_type(p))}
        resp = self._request(
            "POST",
            "/convert/async",
            "Submit Upload",
            SUBMIT_UPLOAD_TIMEOUT,
            params=self._conversion_params(output_format, page_size, orientation, quality),
            files=files,
        )
        _must_2xx(resp, "Submit Upload")
        return self._job_id(resp)

    def get_status(self, job_id: str) -> str:
        """Current job status as reported by the API, or ``UNKNOWN``."""
        resp = self._request(
            "GET", f"/jobs/{quote(job_id, safe='')}/status", "Status", STATUS_TIMEOUT
        )
        _must_2xx(resp, "Status")
        status = json_get(resp.text, "status")
        return status if status is not None else "UNKNOWN"

    def download_result(self, job_id: str, out_path: str | Path) -> Path:
        """Fetch the artifact and write it verbatim to ``out_path``."""
        resp = self._request(
            "GET", f"/jobs/{quote(job_id, safe='')}/result", "Download", DOWNLOAD_TIMEOUT
        )
        if resp.status_code == 202:
            raise FatalError("Job still processing (202). Try polling longer.")
        _must_2xx(resp, "Download")
        out = Path(out_path)
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_bytes(resp.content)
        except OSError as e:
            raise FatalError(f"Cannot write output {out}: {e}") from e
        return out
