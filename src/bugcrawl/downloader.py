from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .config import MAX_ISSUE_BYTES
from .errors import FilesystemError, IssueTooLargeError
from .inventory import issue_path


class IssueSource(Protocol):
    def issue_body(self, identifier: str) -> bytes: ...


@dataclass(frozen=True)
class DownloadResult:
    identifier: str
    path: Path
    size: int


class IssueDownloader:
    """Fetch one issue's full JSON and publish it with write-then-rename."""

    def __init__(
        self, client: IssueSource, directory: Path, max_issue_bytes: int = MAX_ISSUE_BYTES
    ) -> None:
        self.client = client
        self.directory = directory
        self.max_issue_bytes = max_issue_bytes

    def download(self, identifier: str) -> DownloadResult:
        final = issue_path(self.directory, identifier)
        tmp = issue_path(self.directory, identifier, tmp=True)
        # the whole body is buffered; oversize issues never reach the disk
        content = self.client.issue_body(identifier)
        if len(content) > self.max_issue_bytes:
            raise IssueTooLargeError(identifier, len(content), self.max_issue_bytes)
        try:
            tmp.write_bytes(content)
        except OSError as exc:
            raise FilesystemError(f"failed to write {tmp}: {exc}", path=tmp) from exc
        try:
            tmp.replace(final)
        except OSError as exc:
            raise FilesystemError(f"failed to rename {tmp} to {final}: {exc}", path=final) from exc
        return DownloadResult(identifier, final, len(content))


__all__ = ["DownloadResult", "IssueDownloader", "IssueSource"]
