"""bugcrawl CLI.

Subcommands:
  crawl    -> list every issue and download the ones missing locally
  missing  -> list every issue and print the keys missing locally (no download)

Exit status is 0 on success and 1 if the crawl reports any error.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any

from bugcrawl.config import DEFAULT_DIRECTORY, SORT_FIELDS, CrawlConfig
from bugcrawl.errors import BugcrawlError
from bugcrawl.logging import configure_logging
from bugcrawl.orchestrator import crawl
from bugcrawl.runtime import execute_command, prepare_config

PROG = "bugcrawl"
EXIT_FAILURE = 1

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "directory",
        nargs="?",
        help=f"Directory holding <key>.json issue files (default: {DEFAULT_DIRECTORY})",
    )
    p.add_argument("--config", help="Path to a YAML config file")
    p.add_argument("--base-url", help="Bugview host, e.g. https://smartos.org")
    p.add_argument("--sort", choices=SORT_FIELDS, help="Listing sort field")
    p.add_argument(
        "--listing-delay", type=float, help="Minimum seconds between listing requests"
    )


def _build_parser() -> argparse.ArgumentParser:
    """Construct top-level CLI parser with subcommands."""
    p = _FormatterArgumentParser(prog=PROG, description="Mirror a Bugview issue tracker")
    p.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    p.add_argument("--log-json", action="store_true", help="Emit JSON log lines")
    p.add_argument("--log-level", help="Log level (default INFO)")
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    pc = sub.add_parser("crawl", help="Download every issue missing from the directory")
    _add_common(pc)
    pc.add_argument(
        "--issue-delay", type=float, help="Minimum seconds between issue downloads"
    )
    pc.add_argument("--max-issue-bytes", type=int, help="Largest issue body accepted")
    pc.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Record failed issues and keep going instead of aborting",
    )
    pc.add_argument("--dry-run", action="store_true", help="List and filter only")
    pc.add_argument("--summary-json", help="Write a JSON run summary to this path")

    pm = sub.add_parser("missing", help="Print issue keys missing from the directory")
    _add_common(pm)
    return p


def _cmd_crawl(cfg: CrawlConfig) -> int:
    summary = crawl(cfg)
    if not summary.ok:
        for entry in [*summary.invalid, *summary.failed]:
            print(f"{PROG}: {entry['identifier']}: {entry['message']}", file=sys.stderr)
        return EXIT_FAILURE
    return 0


def _cmd_missing(cfg: CrawlConfig) -> int:
    summary = crawl(cfg)
    for identifier in summary.missing:
        print(identifier)
    return 0 if summary.ok else EXIT_FAILURE


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        cfg = prepare_config(args)
        configure_logging(json_logging=cfg.logging_json_enabled, level=cfg.logging_level)
        handlers = {"crawl": _cmd_crawl, "missing": _cmd_missing}
        return execute_command(lambda: handlers[args.cmd](cfg), args.cmd)
    except BugcrawlError as exc:
        print(f"{PROG}: {exc}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
