from __future__ import annotations

import errno
import os
from types import SimpleNamespace

import pytest

from bugcrawl import inventory
from bugcrawl.errors import FilesystemError, InvalidIdentifierError
from bugcrawl.inventory import (
    issue_path,
    missing_identifiers,
    partition_identifiers,
    validate_identifier,
)


def test_missing_subset_preserves_order(tmp_path):
    (tmp_path / "B.json").write_text("{}")

    assert missing_identifiers(["A", "B", "C"], tmp_path) == ["A", "C"]


def test_tmp_file_does_not_count_as_present(tmp_path):
    (tmp_path / "A.json.tmp").write_text("{")

    assert missing_identifiers(["A"], tmp_path) == ["A"]


def test_duplicates_are_not_collapsed(tmp_path):
    assert missing_identifiers(["A", "A"], tmp_path) == ["A", "A"]


def test_stat_failure_other_than_not_found_is_fatal(tmp_path, monkeypatch):
    def denied(path, *args, **kwargs):
        raise PermissionError(errno.EACCES, "Permission denied", str(path))

    monkeypatch.setattr(inventory, "os", SimpleNamespace(stat=denied))

    with pytest.raises(FilesystemError) as excinfo:
        missing_identifiers(["A"], tmp_path)

    assert excinfo.value.path == tmp_path / "A.json"


def test_issue_path_layout(tmp_path):
    assert issue_path(tmp_path, "OS-1") == tmp_path / "OS-1.json"
    assert issue_path(tmp_path, "OS-1", tmp=True) == tmp_path / "OS-1.json.tmp"


@pytest.mark.parametrize("bad", ["", ".", "..", "../etc/passwd", "a/b", "a\\b", "nul\x00"])
def test_unsafe_identifiers_rejected_as_paths(tmp_path, bad):
    with pytest.raises(InvalidIdentifierError):
        issue_path(tmp_path, bad)


@pytest.mark.parametrize("good", ["OS-1", "MANATEE-400", "smartos-live.12", "X_1"])
def test_default_pattern_accepts_bugview_keys(good):
    assert validate_identifier(good) == good


@pytest.mark.parametrize("bad", [".hidden", "-dash", "with space", "OS-1\n"])
def test_default_pattern_rejects_odd_keys(bad):
    with pytest.raises(InvalidIdentifierError):
        validate_identifier(bad)


def test_partition_keeps_order_and_reports_rejects():
    valid, invalid = partition_identifiers(["OS-1", "../x", "OS-2", ".."])

    assert valid == ["OS-1", "OS-2"]
    assert [e.identifier for e in invalid] == ["../x", ".."]


def test_custom_pattern_cannot_allow_separators():
    with pytest.raises(InvalidIdentifierError):
        validate_identifier("a/b", pattern=r".+")


def test_missing_checks_real_filesystem(tmp_path):
    (tmp_path / "OS-2.json").write_text("{}")
    os.mkdir(tmp_path / "OS-3.json")  # any existing entry counts as present

    assert missing_identifiers(["OS-1", "OS-2", "OS-3"], tmp_path) == ["OS-1"]
