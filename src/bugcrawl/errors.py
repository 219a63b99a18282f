"""Error taxonomy & redaction for bugcrawl.

Every failure the crawler can hit is raised as a subclass of
:class:`BugcrawlError` so the CLI can report it with a single line and a
non-zero exit status. ``classify_error`` maps exceptions onto a small set of
categories used in log records and the run summary.

Public API:
- BugcrawlError and its subclasses
- classify_error(exc) -> ErrorInfo
- redact(text) -> str
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"(?<=://)[^/\s:@]+:[^/\s@]+(?=@)"),  # user:password@host in URLs
    re.compile(r"(?i)(?<=bearer )[A-Za-z0-9._~+/=-]{8,}"),
]

_REDACTION_PLACEHOLDER = "<redacted>"


class BugcrawlError(RuntimeError):
    """Base class for every error surfaced by a crawl."""

    category = "generic"


class NetworkError(BugcrawlError):
    """Transport-level failure (DNS, refused connection, timeout)."""

    category = "network"


class ProtocolError(BugcrawlError):
    """The server answered with a status outside 200-299."""

    category = "protocol"

    def __init__(self, status: int, reason: str | None = None, *, url: str | None = None):
        self.status = status
        self.reason = reason or "unknown response code"
        self.url = url
        super().__init__(f"unexpected response code: {status} {self.reason}")


class DecodeError(BugcrawlError):
    """A response body did not have the expected shape."""

    category = "decode"


class IssueTooLargeError(BugcrawlError):
    category = "oversize"

    def __init__(self, identifier: str, size: int, limit: int):
        self.identifier = identifier
        self.size = size
        self.limit = limit
        super().__init__(
            f"issue {identifier} was too big ({size} bytes, max is {limit} bytes)"
        )


class FilesystemError(BugcrawlError):
    """Any local I/O failure other than a missing file during inventory."""

    category = "filesystem"

    def __init__(self, message: str, *, path: Any = None):
        super().__init__(message)
        self.path = path


class InvalidIdentifierError(BugcrawlError):
    """An identifier from the listing is unsafe to use as a file name."""

    category = "identifier"

    def __init__(self, identifier: str, reason: str):
        self.identifier = identifier
        super().__init__(f"invalid issue identifier {identifier!r}: {reason}")


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "category": self.category,
            "message": self.message,
            "type": self.original_type,
        }
        if self.details:
            out["details"] = self.details
        return out


def redact(text: str) -> str:
    """Mask credentials that may appear in URLs or auth headers."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def _details(exc: BaseException) -> dict[str, Any] | None:
    if isinstance(exc, ProtocolError):
        return {"status": exc.status, "url": redact(exc.url or "")}
    if isinstance(exc, IssueTooLargeError):
        return {"identifier": exc.identifier, "size": exc.size, "limit": exc.limit}
    if isinstance(exc, InvalidIdentifierError):
        return {"identifier": exc.identifier}
    if isinstance(exc, FilesystemError) and exc.path is not None:
        return {"path": str(exc.path)}
    return None


def classify_error(exc: BaseException) -> ErrorInfo:
    """Map an exception onto its reporting category.

    Crawl errors carry their own category; unknown exceptions fall back to
    message inspection, ending at 'generic'.
    """
    msg = redact(str(exc) if exc else "")
    name = exc.__class__.__name__
    if isinstance(exc, BugcrawlError):
        return ErrorInfo(exc.category, msg, name, _details(exc))
    low = msg.lower()
    if any(k in low for k in ("timed out", "timeout", "connection reset")):
        return ErrorInfo("network", msg, name)
    if isinstance(exc, OSError):
        return ErrorInfo("filesystem", msg, name)
    return ErrorInfo("generic", msg, name)


__all__ = [
    "BugcrawlError",
    "DecodeError",
    "ErrorInfo",
    "FilesystemError",
    "InvalidIdentifierError",
    "IssueTooLargeError",
    "NetworkError",
    "ProtocolError",
    "classify_error",
    "redact",
]
