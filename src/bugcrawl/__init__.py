"""bugcrawl - mirror a Bugview issue tracker into a local directory.

High-level public API:

from bugcrawl import crawl, load_config

cfg = load_config('bugcrawl.yaml')   # or load_config(None) for defaults
summary = crawl(cfg)
print(summary.totals())

Each issue is stored as ``<directory>/<key>.json``; issues already present are
skipped, so re-running only fetches what is new.
"""

from __future__ import annotations

# Defined before the submodule imports below; config reads it for the User-Agent.
__version__ = "0.2.0"

from .config import ConfigError, CrawlConfig, FailurePolicy, load_config  # noqa: E402
from .errors import BugcrawlError  # noqa: E402
from .orchestrator import CrawlSummary, crawl  # noqa: E402

__all__ = [
    "BugcrawlError",
    "ConfigError",
    "CrawlConfig",
    "CrawlSummary",
    "FailurePolicy",
    "crawl",
    "load_config",
    "__version__",
]
