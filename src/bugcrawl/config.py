from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, cast

import yaml

from . import __version__
from .errors import BugcrawlError

DEFAULT_BASE_URL = "https://smartos.org"
DEFAULT_DIRECTORY = "./bugview"
DEFAULT_ID_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9._-]*$"
DEFAULT_USER_AGENT = f"bugcrawl/{__version__}"
MAX_ISSUE_BYTES = 1024 * 1024
SORT_FIELDS = ("created", "updated", "key")


class ConfigError(BugcrawlError):
    category = "config"


class FailurePolicy(str, Enum):
    """What a failed issue download does to the rest of the crawl."""

    ABORT = "abort"
    SKIP = "skip"


@dataclass
class CrawlConfig:
    directory: Path = field(default_factory=lambda: Path(DEFAULT_DIRECTORY))
    base_url: str = DEFAULT_BASE_URL
    sort: str = "created"
    id_pattern: str = DEFAULT_ID_PATTERN
    max_issue_bytes: int = MAX_ISSUE_BYTES
    failure_policy: FailurePolicy = FailurePolicy.ABORT
    progress_every: int = 100
    dry_run: bool = False
    # HTTP configuration (seconds)
    user_agent: str = DEFAULT_USER_AGENT
    connect_timeout: float = 30.0
    request_timeout: float = 30.0
    # Pacing configuration (minimum seconds between requests of one kind)
    listing_delay: float = 0.5
    issue_delay: float = 1.5
    # Output
    summary_json: Path | None = None
    # Logging configuration
    logging_json_enabled: bool = False
    logging_level: str = "INFO"
    source_file: Path | None = None


def _resolve_env_var(value: Any, env_var_name: str | None = None) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith('$'):
        env_name = env_var_name or value[1:]
        return os.getenv(env_name, value)
    return value


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {}) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Configuration section '{name}' must be a mapping")
    return cast(dict[str, Any], value)


def non_negative(name: str, value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc
    if number < 0:
        raise ConfigError(f"{name} must not be negative, got {value!r}")
    return number


def positive_int(name: str, value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc
    if number <= 0:
        raise ConfigError(f"{name} must be positive, got {value!r}")
    return number


def parse_failure_policy(value: Any) -> FailurePolicy:
    try:
        return FailurePolicy(str(value).lower())
    except ValueError as exc:
        choices = ", ".join(p.value for p in FailurePolicy)
        raise ConfigError(f"failure_policy must be one of {choices}, got {value!r}") from exc


def build_config(raw: dict[str, Any], source_file: Path | None = None) -> CrawlConfig:
    crawl = _section(raw, 'crawl')
    http = _section(raw, 'http')
    pacing = _section(raw, 'pacing')
    out = _section(raw, 'output')
    logging_config = _section(raw, 'logging')

    directory = _resolve_env_var(crawl.get('directory'))
    directory = os.getenv('BUGCRAWL_DIRECTORY') or directory or DEFAULT_DIRECTORY
    base_url = _resolve_env_var(crawl.get('base_url'))
    base_url = os.getenv('BUGCRAWL_BASE_URL') or base_url or DEFAULT_BASE_URL
    if not str(base_url).startswith(("http://", "https://")):
        raise ConfigError(f"base_url must start with http:// or https://, got: {base_url}")

    sort = str(crawl.get('sort', 'created'))
    if sort not in SORT_FIELDS:
        raise ConfigError(f"sort must be one of {', '.join(SORT_FIELDS)}, got {sort!r}")

    summary_json = out.get('summary_json')
    return CrawlConfig(
        directory=Path(str(directory)),
        base_url=str(base_url).rstrip('/'),
        sort=sort,
        id_pattern=str(crawl.get('id_pattern', DEFAULT_ID_PATTERN)),
        max_issue_bytes=positive_int('max_issue_bytes', crawl.get('max_issue_bytes', MAX_ISSUE_BYTES)),
        failure_policy=parse_failure_policy(crawl.get('failure_policy', 'abort')),
        progress_every=positive_int('progress_every', crawl.get('progress_every', 100)),
        user_agent=str(http.get('user_agent', DEFAULT_USER_AGENT)),
        connect_timeout=non_negative('connect_timeout', http.get('connect_timeout', 30)),
        request_timeout=non_negative('request_timeout', http.get('request_timeout', 30)),
        listing_delay=non_negative('listing_delay', pacing.get('listing_delay', 0.5)),
        issue_delay=non_negative('issue_delay', pacing.get('issue_delay', 1.5)),
        summary_json=Path(summary_json) if summary_json else None,
        logging_json_enabled=bool(logging_config.get('json_enabled', False)),
        logging_level=str(logging_config.get('level', 'INFO')),
        source_file=source_file,
    )


def load_config(path: str | Path | None = None) -> CrawlConfig:
    """Load a YAML config file; ``None`` yields the built-in defaults."""
    if path is None:
        return build_config({})
    p = Path(path)
    if not p.exists():
        raise ConfigError(f'Configuration file not found: {p}')
    try:
        raw = yaml.safe_load(p.read_text(encoding='utf-8')) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f'Invalid YAML in config file {p}: {exc}') from exc
    if not isinstance(raw, dict):
        raise ConfigError(f'Configuration file {p} must contain a mapping')
    return build_config(cast(dict[str, Any], raw), source_file=p)


__all__ = [
    "ConfigError",
    "CrawlConfig",
    "FailurePolicy",
    "build_config",
    "load_config",
    "non_negative",
    "parse_failure_policy",
    "positive_int",
]
