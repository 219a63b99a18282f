from __future__ import annotations

from typing import Protocol

from .errors import DecodeError
from .logging import StructuredLogger, get_logger
from .models import ListingPage
from .pacing import Pacer


class ListingSource(Protocol):
    def listing_page(self, offset: int, sort: str = "created") -> ListingPage: ...


def list_all_issue_identifiers(
    client: ListingSource,
    *,
    sort: str = "created",
    pacer: Pacer | None = None,
    logger: StructuredLogger | None = None,
) -> list[str]:
    """Walk the listing endpoint from offset 0 and return every issue key.

    Keys are returned in the order served, duplicates included. The walk ends
    at the first page whose ``offset + len(issues)`` reaches ``total``. Any page
    failure aborts the walk; no partial list is returned.
    """
    log = logger or get_logger()
    offset = 0
    identifiers: list[str] = []
    while True:
        if pacer is not None:
            pacer.wait()
        page = client.listing_page(offset, sort)
        identifiers.extend(item.key for item in page.issues)
        log.info(f"listed {page.offset} of {page.total} total issues", offset=page.offset)
        if page.is_last:
            break
        if not page.issues:
            # an empty page short of the total would request the same offset forever
            raise DecodeError(
                f"listing page at offset {page.offset} is empty but total is {page.total}"
            )
        offset = page.end
    return identifiers


__all__ = ["ListingSource", "list_all_issue_identifiers"]
