"""End-to-end crawl: list, filter against the local directory, download.

Run state (counts, failures) lives in the :class:`CrawlSummary` returned by
:func:`crawl`; nothing is kept at module level between runs.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypedDict, cast

from .config import CrawlConfig, FailurePolicy
from .downloader import IssueDownloader
from .errors import BugcrawlError, FilesystemError, classify_error
from .http_client import BugviewClient
from .inventory import missing_identifiers, partition_identifiers
from .logging import StructuredLogger, get_logger
from .pacing import Pacer
from .pagination import list_all_issue_identifiers

SUMMARY_SCHEMA_VERSION = 1


class _FailureRequired(TypedDict):
    identifier: str
    category: str
    message: str


class FailureEntry(_FailureRequired, total=False):
    type: str
    details: dict[str, Any]


class Totals(TypedDict):
    listed: int
    present: int
    missing: int
    downloaded: int
    failed: int
    invalid: int


@dataclass
class CrawlSummary:
    directory: Path
    dry_run: bool = False
    listed: int = 0
    present: int = 0
    missing: list[str] = field(default_factory=list)
    downloaded: int = 0
    failed: list[FailureEntry] = field(default_factory=list)
    invalid: list[FailureEntry] = field(default_factory=list)
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failed and not self.invalid

    def totals(self) -> Totals:
        return {
            "listed": self.listed,
            "present": self.present,
            "missing": len(self.missing),
            "downloaded": self.downloaded,
            "failed": len(self.failed),
            "invalid": len(self.invalid),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "schemaVersion": SUMMARY_SCHEMA_VERSION,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "started_at": self.started_at,
            "duration_ms": round(self.duration_ms, 2),
            "directory": str(self.directory),
            "dry_run": self.dry_run,
            "totals": self.totals(),
            "failed": list(self.failed),
            "invalid": list(self.invalid),
        }


def _failure_entry(identifier: str, exc: BaseException) -> FailureEntry:
    return cast(FailureEntry, {"identifier": identifier, **classify_error(exc).to_dict()})


def write_summary(path: Path, summary: CrawlSummary) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(json.dumps(summary.to_dict(), indent=2) + "\n", encoding="utf-8")
        tmp.replace(path)
    except OSError as exc:
        raise FilesystemError(f"failed to write summary {path}: {exc}", path=path) from exc


def _ensure_directory(directory: Path) -> None:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(f"failed to create {directory}: {exc}", path=directory) from exc


def _download_missing(
    summary: CrawlSummary,
    downloader: IssueDownloader,
    cfg: CrawlConfig,
    pacer: Pacer,
    log: StructuredLogger,
) -> None:
    skip = cfg.failure_policy is FailurePolicy.SKIP
    for count, identifier in enumerate(summary.missing, start=1):
        pacer.wait()
        log.debug(f"downloading: {identifier}", identifier=identifier)
        try:
            result = downloader.download(identifier)
        except BugcrawlError as exc:
            if not skip:
                raise
            entry = _failure_entry(identifier, exc)
            summary.failed.append(entry)
            log.log_error(f"skipping {identifier}", error=entry["message"], identifier=identifier)
            continue
        summary.downloaded += 1
        log.log_download(identifier, count, size=result.size)
        if count == 1 or count % cfg.progress_every == 0:
            log.info(f"downloaded {summary.downloaded} issues", downloaded=summary.downloaded)


def crawl(
    cfg: CrawlConfig,
    *,
    client: BugviewClient | None = None,
    logger: StructuredLogger | None = None,
    listing_pacer: Pacer | None = None,
    issue_pacer: Pacer | None = None,
) -> CrawlSummary:
    """Run one full crawl into ``cfg.directory``.

    Under ``FailurePolicy.ABORT`` the first error propagates. Under
    ``FailurePolicy.SKIP`` per-issue failures and unusable identifiers are
    recorded on the summary instead; listing and inventory errors still abort.
    """
    log = logger or get_logger()
    listing_pacer = listing_pacer or Pacer(cfg.listing_delay)
    issue_pacer = issue_pacer or Pacer(cfg.issue_delay)
    owns_client = client is None
    client = client or BugviewClient.from_config(cfg)
    summary = CrawlSummary(directory=cfg.directory, dry_run=cfg.dry_run)
    start = time.perf_counter()
    try:
        _ensure_directory(cfg.directory)
        log.info("fetching full list of issue ids")
        with log.timed_operation("listing", sort=cfg.sort):
            identifiers = list_all_issue_identifiers(
                client, sort=cfg.sort, pacer=listing_pacer, logger=log
            )
        summary.listed = len(identifiers)
        log.info(f"total issues: {summary.listed}", total=summary.listed)

        valid, invalid = partition_identifiers(identifiers, cfg.id_pattern)
        if invalid and cfg.failure_policy is FailurePolicy.ABORT:
            raise invalid[0]
        for exc in invalid:
            summary.invalid.append(_failure_entry(exc.identifier, exc))
            log.warning(str(exc), identifier=exc.identifier)

        log.info("determining which issues we already have")
        summary.missing = missing_identifiers(valid, cfg.directory)
        summary.present = len(valid) - len(summary.missing)
        log.info(
            f"issues to download: {len(summary.missing)}",
            missing=len(summary.missing),
            present=summary.present,
        )

        if not cfg.dry_run:
            downloader = IssueDownloader(client, cfg.directory, cfg.max_issue_bytes)
            with log.timed_operation("download", missing=len(summary.missing)):
                _download_missing(summary, downloader, cfg, issue_pacer, log)
    finally:
        summary.duration_ms = (time.perf_counter() - start) * 1000
        if owns_client:
            client.close()

    log.log_performance("crawl", summary.duration_ms, **summary.totals())
    if cfg.summary_json:
        write_summary(cfg.summary_json, summary)
    return summary


__all__ = ["CrawlSummary", "FailureEntry", "Totals", "crawl", "write_summary"]
