from __future__ import annotations

from dataclasses import dataclass, field
from types import TracebackType
from typing import Any
from urllib.parse import quote

import requests

from .config import DEFAULT_BASE_URL, DEFAULT_USER_AGENT, SORT_FIELDS, CrawlConfig
from .errors import DecodeError, NetworkError, ProtocolError
from .logging import get_logger
from .models import ListingPage

LISTING_PATH = "bugview/index.json"
ISSUE_PATH_TEMPLATE = "bugview/fulljson/{identifier}"
HTTP_SUCCESS_MIN = 200
HTTP_SUCCESS_MAX = 299


@dataclass
class BugviewClient:
    """Sequential GET client for the Bugview listing and issue endpoints."""

    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    connect_timeout: float = 30.0
    request_timeout: float = 30.0
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)
    _owns_session: bool = field(init=False, repr=False, default=False)

    def __post_init__(self) -> None:
        self._owns_session = self.session is None
        self._session = self.session or requests.Session()
        self._session.headers["User-Agent"] = self.user_agent

    @classmethod
    def from_config(
        cls, cfg: CrawlConfig, session: requests.Session | None = None
    ) -> BugviewClient:
        return cls(
            base_url=cfg.base_url,
            user_agent=cfg.user_agent,
            connect_timeout=cfg.connect_timeout,
            request_timeout=cfg.request_timeout,
            session=session,
        )

    def __enter__(self) -> BugviewClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def url_for(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    # ---- transport ----------------------------------------------------
    def get(self, path: str, *, params: dict[str, Any] | None = None) -> requests.Response:
        """GET ``path`` and return the response, failing on any non-2xx status."""
        url = self.url_for(path)
        log = get_logger()
        log.debug(f"-> GET {url}", params=params)
        try:
            response = self._session.request(
                "GET",
                url,
                params=params,
                headers=self._session.headers,
                timeout=(self.connect_timeout, self.request_timeout),
            )
        except requests.RequestException as exc:
            raise NetworkError(f"request error: GET {url}: {exc}") from exc
        status = response.status_code
        reason = getattr(response, "reason", None) or "unknown response code"
        log.debug(f"<- status {status} {reason}")
        if not HTTP_SUCCESS_MIN <= status <= HTTP_SUCCESS_MAX:
            raise ProtocolError(status, reason, url=url)
        return response

    # ---- endpoints ----------------------------------------------------
    def listing_page(self, offset: int, sort: str = "created") -> ListingPage:
        if sort not in SORT_FIELDS:
            raise ValueError(f"sort must be one of {', '.join(SORT_FIELDS)}, got {sort!r}")
        response = self.get(LISTING_PATH, params={"sort": sort, "offset": offset})
        try:
            payload = response.json()
        except ValueError as exc:
            raise DecodeError(f"listing page at offset {offset} is not valid JSON: {exc}") from exc
        return ListingPage.from_dict(payload)

    def issue_body(self, identifier: str) -> bytes:
        path = ISSUE_PATH_TEMPLATE.format(identifier=quote(identifier, safe=""))
        return self.get(path).content


__all__ = ["BugviewClient", "ISSUE_PATH_TEMPLATE", "LISTING_PATH"]
