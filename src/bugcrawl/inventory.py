"""Local inventory: where issue files live and which ones are still missing."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from pathlib import Path

from .config import DEFAULT_ID_PATTERN
from .errors import FilesystemError, InvalidIdentifierError

ISSUE_SUFFIX = ".json"
TMP_SUFFIX = ".tmp"
_FORBIDDEN = ("/", "\\", "\x00")


def _check_basename(identifier: str) -> None:
    if not identifier:
        raise InvalidIdentifierError(identifier, "empty")
    if identifier in (".", ".."):
        raise InvalidIdentifierError(identifier, "reserved name")
    for ch in _FORBIDDEN:
        if ch in identifier:
            raise InvalidIdentifierError(identifier, f"contains {ch!r}")


def validate_identifier(identifier: str, pattern: str = DEFAULT_ID_PATTERN) -> str:
    """Return ``identifier`` unchanged or raise if it is unsafe as a basename."""
    _check_basename(identifier)
    if not re.fullmatch(pattern, identifier):
        raise InvalidIdentifierError(identifier, f"does not match {pattern}")
    return identifier


def partition_identifiers(
    identifiers: Iterable[str], pattern: str = DEFAULT_ID_PATTERN
) -> tuple[list[str], list[InvalidIdentifierError]]:
    valid: list[str] = []
    invalid: list[InvalidIdentifierError] = []
    for identifier in identifiers:
        try:
            valid.append(validate_identifier(identifier, pattern))
        except InvalidIdentifierError as exc:
            invalid.append(exc)
    return valid, invalid


def issue_path(directory: Path, identifier: str, tmp: bool = False) -> Path:
    _check_basename(identifier)
    name = identifier + ISSUE_SUFFIX + (TMP_SUFFIX if tmp else "")
    return directory / name


def missing_identifiers(identifiers: Iterable[str], directory: Path) -> list[str]:
    """Identifiers with no published file in ``directory``, in input order.

    Only "not found" counts as missing; any other stat failure is fatal.
    """
    missing: list[str] = []
    for identifier in identifiers:
        path = issue_path(directory, identifier)
        try:
            os.stat(path)
        except FileNotFoundError:
            missing.append(identifier)
        except OSError as exc:
            raise FilesystemError(
                f"failed to get local metadata for {path}: {exc}", path=path
            ) from exc
    return missing


__all__ = [
    "ISSUE_SUFFIX",
    "TMP_SUFFIX",
    "issue_path",
    "missing_identifiers",
    "partition_identifiers",
    "validate_identifier",
]
