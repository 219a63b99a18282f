"""Pytest configuration for bugcrawl tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`), and provides an
in-memory stand-in for the Bugview HTTP API.
"""

from __future__ import annotations

import json
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any
from urllib.parse import unquote

import pytest

_TEST_START_TIMES: dict[str, float] = {}
_TEST_DURATIONS: list[tuple[str, float]] = []

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from bugcrawl.config import CrawlConfig  # noqa: E402
from bugcrawl.http_client import BugviewClient  # noqa: E402

BASE_URL = "https://bugview.test"


class DummyResponse:
    def __init__(self, status_code: int, content: bytes = b"", reason: str | None = None):
        self.status_code = status_code
        self.content = content
        self.reason = reason or ("OK" if status_code < 300 else "Internal Server Error")

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")

    def json(self) -> Any:
        return json.loads(self.text)


class FakeBugview:
    """requests.Session-shaped fake serving a synthetic issue listing.

    ``keys`` is the full listing in server order; pages hold ``page_size``
    entries. ``listing_status`` / ``issue_status`` inject non-2xx answers and
    ``bodies`` overrides the per-issue JSON body.
    """

    def __init__(self, keys: list[str], page_size: int = 3):
        self.keys = list(keys)
        self.page_size = page_size
        self.headers: dict[str, str] = {}
        self.request_log: list[tuple[str, str, dict[str, Any]]] = []
        self.listing_status: dict[int, int] = {}
        self.issue_status: dict[str, int] = {}
        self.bodies: dict[str, bytes] = {}
        self.errors: dict[str, Exception] = {}
        self.total_override: int | None = None
        self.closed = False

    # -- helpers used by tests
    @property
    def listing_offsets(self) -> list[int]:
        return [int(p["params"]["offset"]) for _, url, p in self.request_log if url.endswith("/index.json")]

    @property
    def issue_requests(self) -> list[str]:
        marker = "/bugview/fulljson/"
        return [unquote(url.split(marker, 1)[1]) for _, url, _ in self.request_log if marker in url]

    def body_for(self, key: str) -> bytes:
        if key in self.bodies:
            return self.bodies[key]
        return json.dumps({"key": key, "fields": {"summary": f"synopsis of {key}"}}).encode()

    # -- requests.Session surface
    def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: Any = None,
        timeout: Any = None,
        **_: Any,
    ) -> DummyResponse:
        self.request_log.append((method, url, {"params": params, "headers": headers, "timeout": timeout}))
        if url in self.errors:
            raise self.errors[url]
        if url.endswith("/bugview/index.json"):
            offset = int((params or {}).get("offset", 0))
            if offset in self.listing_status:
                return DummyResponse(self.listing_status[offset])
            chunk = self.keys[offset : offset + self.page_size]
            page = {
                "offset": offset,
                "total": self.total_override if self.total_override is not None else len(self.keys),
                "sort": (params or {}).get("sort"),
                "issues": [
                    {
                        "id": str(1000 + offset + i),
                        "key": key,
                        "synopsis": f"synopsis of {key}",
                        "resolution": None,
                        "updated": "2020-01-02T00:00:00.000Z",
                        "created": "2020-01-01T00:00:00.000Z",
                    }
                    for i, key in enumerate(chunk)
                ],
            }
            return DummyResponse(200, json.dumps(page).encode())
        marker = "/bugview/fulljson/"
        if marker in url:
            key = unquote(url.split(marker, 1)[1])
            if key in self.issue_status:
                return DummyResponse(self.issue_status[key])
            if key not in self.keys:
                return DummyResponse(404, reason="Not Found")
            return DummyResponse(200, self.body_for(key))
        return DummyResponse(404, reason="Not Found")

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _fresh_global_logger(monkeypatch):
    # handlers bound to a previous test's captured stream must not leak
    import bugcrawl.logging as bugcrawl_logging

    monkeypatch.setattr(bugcrawl_logging, "_GLOBAL", None)


@pytest.fixture
def make_bugview() -> Callable[..., FakeBugview]:
    def _make(keys: list[str], page_size: int = 3) -> FakeBugview:
        return FakeBugview(keys, page_size=page_size)

    return _make


@pytest.fixture
def make_client() -> Callable[[FakeBugview], BugviewClient]:
    def _make(session: FakeBugview) -> BugviewClient:
        return BugviewClient(base_url=BASE_URL, session=session)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def crawl_config(tmp_path: Path) -> CrawlConfig:
    return CrawlConfig(
        directory=tmp_path / "issues",
        base_url=BASE_URL,
        listing_delay=0.0,
        issue_delay=0.0,
    )


# --- Timing utilities to help identify slow/stalling tests ---


def pytest_runtest_setup(item):  # type: ignore
    _TEST_START_TIMES[item.nodeid] = time.perf_counter()


def pytest_runtest_teardown(item):  # type: ignore
    start = _TEST_START_TIMES.pop(item.nodeid, None)
    if start is not None:
        _TEST_DURATIONS.append((item.nodeid, time.perf_counter() - start))


def pytest_sessionfinish(session, exitstatus):  # type: ignore
    if not _TEST_DURATIONS:
        return
    slow = sorted(_TEST_DURATIONS, key=lambda x: x[1], reverse=True)[:10]
    print("\n=== Slowest Tests (top 10) ===")
    for nodeid, secs in slow:
        print(f"{secs:0.3f}s  {nodeid}")
