"""Runtime helpers for bugcrawl CLI orchestration."""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from bugcrawl.config import CrawlConfig, FailurePolicy, load_config, non_negative, positive_int
from bugcrawl.logging import get_logger


class _HandlerCallable(Protocol):
    def __call__(self) -> Any: ...


def prepare_config(
    args: Any, *, loader: Callable[[str | None], CrawlConfig] = load_config
) -> CrawlConfig:
    """Load CrawlConfig and apply command-line overrides from ``args``."""
    cfg = loader(getattr(args, "config", None))
    directory = getattr(args, "directory", None)
    if directory:
        cfg.directory = Path(directory)
    base_url = getattr(args, "base_url", None)
    if base_url:
        cfg.base_url = base_url.rstrip("/")
    sort = getattr(args, "sort", None)
    if sort:
        cfg.sort = sort
    max_issue_bytes = getattr(args, "max_issue_bytes", None)
    if max_issue_bytes is not None:
        cfg.max_issue_bytes = positive_int("max_issue_bytes", max_issue_bytes)
    for name in ("listing_delay", "issue_delay"):
        value = getattr(args, name, None)
        if value is not None:
            setattr(cfg, name, non_negative(name, value))
    if getattr(args, "continue_on_error", False):
        cfg.failure_policy = FailurePolicy.SKIP
    if getattr(args, "dry_run", False) or getattr(args, "cmd", None) == "missing":
        cfg.dry_run = True
    summary_json = getattr(args, "summary_json", None)
    if summary_json:
        cfg.summary_json = Path(summary_json)
    if getattr(args, "log_json", False):
        cfg.logging_json_enabled = True
    log_level = getattr(args, "log_level", None)
    if log_level:
        cfg.logging_level = log_level
    if getattr(args, "quiet", False):
        cfg.logging_level = "WARNING"
    return cfg


def execute_command(handler: _HandlerCallable, command: str) -> int:
    """Run a command handler, logging its exit code and duration."""
    log = get_logger()
    start = time.monotonic()
    exit_code = 1
    try:
        result = handler()
        exit_code = int(result) if result is not None else 0
    finally:
        duration_ms = max(0.0, time.monotonic() - start) * 1000
        log.debug(
            f"command {command} exited {exit_code}",
            operation=f"command_{command}",
            exit_code=exit_code,
            duration_ms=round(duration_ms, 2),
        )
    return exit_code


__all__ = ["prepare_config", "execute_command"]
