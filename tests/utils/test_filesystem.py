# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for filesystem utilities: atomic writes, safe reads, tree removal
and path containment.

Atomic writes are tested by verifying that the target file either has the
full new content or doesn't exist at all.
"""

from pathlib import Path

import pytest

from cratetime.utils.filesystem import atomic_write, remove_tree, safe_read
from cratetime.utils.paths import ensure_directory, validate_path_within


class TestAtomicWrite:
    def test_writes_content_successfully(self, tmp_path: Path) -> None:
        target = tmp_path / "status.json"
        atomic_write(target, '{"status": "done"}')

        assert target.read_text(encoding="utf-8") == '{"status": "done"}'

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "output" / "serde" / "status.json"
        atomic_write(target, "{}")

        assert target.exists()

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "overwrite.txt"
        atomic_write(target, "first version")
        atomic_write(target, "second version")

        assert target.read_text(encoding="utf-8") == "second version"

    def test_no_leftover_temp_files(self, tmp_path: Path) -> None:
        atomic_write(tmp_path / "clean.txt", "clean write")

        assert list(tmp_path.glob(".cratetime_tmp_*")) == []


class TestSafeRead:
    def test_reads_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "stdio"
        target.write_text("time: 0.1 x\n", encoding="utf-8")

        assert safe_read(target) == "time: 0.1 x\n"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            safe_read(tmp_path / "absent")

    def test_directory(self, tmp_path: Path) -> None:
        with pytest.raises(IsADirectoryError):
            safe_read(tmp_path)

    def test_replace_invalid_bytes(self, tmp_path: Path) -> None:
        target = tmp_path / "stdio"
        target.write_bytes(b"ok \xff\xfe\n")

        assert safe_read(target, errors="replace") == "ok ��\n"
        with pytest.raises(UnicodeDecodeError):
            safe_read(target)

    def test_line_endings_are_preserved(self, tmp_path: Path) -> None:
        target = tmp_path / "stdio"
        target.write_bytes(b"a\r\nprogress\rOK\n")

        assert safe_read(target) == "a\r\nprogress\rOK\n"


class TestRemoveTree:
    def test_removes_nested_tree(self, tmp_path: Path) -> None:
        tree = tmp_path / "foo"
        (tree / "deep").mkdir(parents=True)
        (tree / "deep" / "file").write_text("x", encoding="utf-8")

        assert remove_tree(tree) is True
        assert not tree.exists()

    def test_missing_tree(self, tmp_path: Path) -> None:
        assert remove_tree(tmp_path / "never-created") is False


class TestPaths:
    def test_ensure_directory_is_idempotent(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b"
        assert ensure_directory(target) == target
        assert ensure_directory(target) == target
        assert target.is_dir()

    def test_path_inside_root(self, tmp_path: Path) -> None:
        assert validate_path_within(tmp_path / "output" / "serde", tmp_path) == (
            tmp_path / "output" / "serde"
        ).resolve()

    def test_root_itself_is_allowed(self, tmp_path: Path) -> None:
        assert validate_path_within(tmp_path, tmp_path) == tmp_path.resolve()

    @pytest.mark.parametrize("name", ["..", "../sibling", "a/../../escape"])
    def test_escape_rejected(self, tmp_path: Path, name: str) -> None:
        root = tmp_path / "output"
        with pytest.raises(ValueError, match="outside"):
            validate_path_within(root / name, root)
