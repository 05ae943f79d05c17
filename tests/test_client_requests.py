from pathlib import Path

import pytest
import requests

from gopdfgenie_e2e.client import GenieClient
from gopdfgenie_e2e.core import FatalError

BASE = "https://api.test/api/v1"


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", content: bytes | None = None) -> None:
        self.status_code = status_code
        self.text = text
        self.content = content if content is not None else text.encode("utf-8")


class FakeSession:
    """Records every request and replays queued responses in order."""

    def __init__(self, *responses: FakeResponse) -> None:
        self.responses = list(responses)
        self.calls: list[dict] = []

    def request(self, method: str, url: str, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def test_guest_sends_no_credentials() -> None:
    sess = FakeSession(FakeResponse(200, '{"jobId":"j1"}'))
    client = GenieClient(BASE, api_key=None, rapid_secret=None, session=sess)
    assert client.submit_url("https://example.org") == "j1"
    headers = sess.calls[0]["headers"]
    assert "Authorization" not in headers
    assert "X-RapidAPI-Proxy-Secret" not in headers


def test_bearer_and_proxy_secret_headers() -> None:
    sess = FakeSession(FakeResponse(200, '{"status":"RUNNING"}'))
    client = GenieClient(BASE, api_key="X", rapid_secret="shh", session=sess)
    client.get_status("j1")
    headers = sess.calls[0]["headers"]
    assert headers["Authorization"] == "Bearer X"
    assert headers["X-RapidAPI-Proxy-Secret"] == "shh"


def test_submit_url_request_shape() -> None:
    sess = FakeSession(FakeResponse(202, '{"jobId": "abc123", "status": "QUEUED"}'))
    client = GenieClient(BASE + "/", session=sess)
    job = client.submit_url(
        "https://example.org/ü?a=1&b=2",
        output_format="png",
        page_size="Letter",
        orientation="landscape",
        quality="HIGH",
    )
    assert job == "abc123"
    call = sess.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == BASE + "/convert/url/async"
    assert call["params"] == {
        "orientation": "landscape",
        "outputFormat": "png",
        "pageSize": "Letter",
        "quality": "HIGH",
    }
    assert call["json"] == {"url": "https://example.org/ü?a=1&b=2"}
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["timeout"] == (20, 30)


def test_submit_url_query_is_percent_encoded() -> None:
    # Build the request the way requests would send it.
    prepared = requests.Request(
        "POST",
        BASE + "/convert/url/async",
        params={"orientation": "portrait", "outputFormat": "pdf", "pageSize": "A 4", "quality": "a&b"},
    ).prepare()
    assert prepared.url.endswith(
        "/convert/url/async?orientation=portrait&outputFormat=pdf&pageSize=A+4&quality=a%26b"
    )


def test_submit_upload_multipart(tmp_path: Path) -> None:
    site = tmp_path / "site.zip"
    site.write_bytes(b"PK\x03\x04zip-bytes")
    sess = FakeSession(FakeResponse(200, '{"jobId": "up-1"}'))
    client = GenieClient(BASE, api_key="key-12345678", session=sess)
    assert client.submit_upload(site) == "up-1"
    call = sess.calls[0]
    assert call["url"] == BASE + "/convert/async"
    assert call["files"] == {"file": ("site.zip", b"PK\x03\x04zip-bytes", "application/zip")}
    assert "Content-Type" not in call["headers"]
    assert call["timeout"] == (20, 60)


def test_submit_upload_multipart_body_has_unique_boundary(tmp_path: Path) -> None:
    page = tmp_path / "index.html"
    page.write_text("<h1>hi</h1>", encoding="utf-8")
    files = {"file": (page.name, page.read_bytes(), "text/html; charset=utf-8")}
    a = requests.Request("POST", BASE, files=files).prepare()
    b = requests.Request("POST", BASE, files=files).prepare()
    assert a.headers["Content-Type"].startswith("multipart/form-data; boundary=")
    assert a.headers["Content-Type"] != b.headers["Content-Type"]
    assert b'name="file"; filename="index.html"' in a.body
    assert b"Content-Type: text/html; charset=utf-8" in a.body


def test_submit_upload_missing_file_is_fatal_before_any_request(tmp_path: Path) -> None:
    sess = FakeSession()
    client = GenieClient(BASE, session=sess)
    with pytest.raises(FatalError, match="File not found"):
        client.submit_upload(tmp_path / "nope.html")
    assert sess.calls == []


def test_non_2xx_submit_reports_status_and_body() -> None:
    sess = FakeSession(FakeResponse(401, '{"error":"unauthorized"}'))
    client = GenieClient(BASE, api_key="bad", session=sess)
    with pytest.raises(FatalError) as ei:
        client.submit_url("https://example.org")
    assert str(ei.value) == 'Submit URL failed: HTTP 401 {"error":"unauthorized"}'


def test_missing_job_id_is_fatal() -> None:
    sess = FakeSession(FakeResponse(200, '{"status":"QUEUED"}'))
    client = GenieClient(BASE, session=sess)
    with pytest.raises(FatalError, match="No jobId in response"):
        client.submit_url("https://example.org")


def test_transport_error_is_fatal() -> None:
    sess = FakeSession(requests.ConnectionError("refused"))
    client = GenieClient(BASE, session=sess)
    with pytest.raises(FatalError, match="Status request failed"):
        client.get_status("j1")


def test_status_defaults_to_unknown_and_encodes_job_id() -> None:
    sess = FakeSession(FakeResponse(200, "{}"))
    client = GenieClient(BASE, session=sess)
    assert client.get_status("a/b c") == "UNKNOWN"
    assert sess.calls[0]["url"] == BASE + "/jobs/a%2Fb%20c/status"
    assert sess.calls[0]["timeout"] == (20, 20)


def test_download_writes_bytes_and_creates_dirs(tmp_path: Path) -> None:
    sess = FakeSession(FakeResponse(200, content=b"%PDF-1.7 body"))
    client = GenieClient(BASE, session=sess)
    out = tmp_path / "deep" / "nested" / "output.pdf"
    assert client.download_result("j1", out) == out
    assert out.read_bytes() == b"%PDF-1.7 body"
    assert sess.calls[0]["url"] == BASE + "/jobs/j1/result"


def test_download_202_has_its_own_message(tmp_path: Path) -> None:
    sess = FakeSession(FakeResponse(202, '{"status":"RUNNING"}'))
    client = GenieClient(BASE, session=sess)
    out = tmp_path / "output.pdf"
    with pytest.raises(FatalError) as ei:
        client.download_result("j1", out)
    assert str(ei.value) == "Job still processing (202). Try polling longer."
    assert not out.exists()


def test_download_other_errors_use_generic_message(tmp_path: Path) -> None:
    sess = FakeSession(FakeResponse(404, "gone"))
    client = GenieClient(BASE, session=sess)
    with pytest.raises(FatalError, match=r"^Download failed: HTTP 404 gone$"):
        client.download_result("j1", tmp_path / "o.pdf")
