from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import DecodeError


def _require_count(payload: dict[str, Any], name: str) -> int:
    value = payload.get(name)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise DecodeError(f"listing page field '{name}' is not a non-negative integer: {value!r}")
    return value


def _optional_str(item: dict[str, Any], name: str) -> str | None:
    value = item.get(name)
    return None if value is None else str(value)


@dataclass(frozen=True)
class IssueSummary:
    """One row of the listing endpoint; timestamps are kept as opaque strings."""

    id: str
    key: str
    synopsis: str = ""
    resolution: str | None = None
    updated: str | None = None
    created: str | None = None

    @classmethod
    def from_dict(cls, item: Any) -> IssueSummary:
        if not isinstance(item, dict):
            raise DecodeError(f"listing entry is not an object: {item!r}")
        key = item.get("key")
        if not isinstance(key, str) or not key:
            raise DecodeError(f"listing entry has no issue key: {item!r}")
        return cls(
            id=str(item.get("id", "")),
            key=key,
            synopsis=str(item.get("synopsis") or ""),
            resolution=_optional_str(item, "resolution"),
            updated=_optional_str(item, "updated"),
            created=_optional_str(item, "created"),
        )


@dataclass(frozen=True)
class ListingPage:
    offset: int
    total: int
    sort: str
    issues: list[IssueSummary] = field(default_factory=list)

    @property
    def end(self) -> int:
        """Offset just past this page, per the server's accounting."""
        return self.offset + len(self.issues)

    @property
    def is_last(self) -> bool:
        return self.end >= self.total

    @classmethod
    def from_dict(cls, payload: Any) -> ListingPage:
        if not isinstance(payload, dict):
            raise DecodeError(f"listing page is not an object: {type(payload).__name__}")
        issues_raw = payload.get("issues")
        if not isinstance(issues_raw, list):
            raise DecodeError("listing page field 'issues' is not a list")
        return cls(
            offset=_require_count(payload, "offset"),
            total=_require_count(payload, "total"),
            sort=str(payload.get("sort") or ""),
            issues=[IssueSummary.from_dict(item) for item in issues_raw],
        )


__all__ = ["IssueSummary", "ListingPage"]
