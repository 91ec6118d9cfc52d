"""Unit tests for the in-memory workspace tree (qwikgen.devkit.tree).

Tests cover:
- normalize_path / join_path_fragments
- write, read, delete and rename semantics
- Derived directory structure (exists, children, walk_files)
- Net change computation (list_changes), in memory and over a disk root
"""

from __future__ import annotations

from pathlib import Path

import pytest

from qwikgen.devkit.tree import (
    ChangeType,
    FileChange,
    WorkspaceTree,
    join_path_fragments,
    normalize_path,
)
from qwikgen.errors import BoundaryViolation, PathConflictError

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


class TestNormalizePath:
    def test_collapses_separators_and_dots(self):
        assert normalize_path("libs/./my-lib//src/") == "libs/my-lib/src"

    def test_resolves_inner_parent_segments(self):
        assert normalize_path("libs/my-lib/../other") == "libs/other"

    def test_backslashes_become_slashes(self):
        assert normalize_path("libs\\my-lib\\index.ts") == "libs/my-lib/index.ts"

    def test_root_is_empty_string(self):
        assert normalize_path(".") == ""

    def test_absolute_path_rejected(self):
        with pytest.raises(BoundaryViolation):
            normalize_path("/etc/passwd")

    def test_escape_from_workspace_rejected(self):
        with pytest.raises(BoundaryViolation):
            normalize_path("../outside.txt")

    def test_path_relative_to_boundary(self):
        assert normalize_path("src/index.ts", "libs/a") == "libs/a/src/index.ts"

    def test_escape_from_boundary_rejected(self):
        with pytest.raises(BoundaryViolation) as exc_info:
            normalize_path("../b/index.ts", "libs/a")
        assert exc_info.value.boundary == "libs/a"

    def test_sibling_with_common_prefix_rejected(self):
        with pytest.raises(BoundaryViolation):
            normalize_path("../a-other/x.ts", "libs/a")


class TestJoinPathFragments:
    def test_skips_empty_fragments(self):
        assert join_path_fragments("libs", "", "my-lib", "src") == "libs/my-lib/src"

    def test_no_fragments(self):
        assert join_path_fragments() == ""


# ---------------------------------------------------------------------------
# Reads & writes
# ---------------------------------------------------------------------------


class TestWriteAndRead:
    def test_read_back_written_text(self):
        tree = WorkspaceTree()
        tree.write("a/b.txt", "hello")
        assert tree.read("a/b.txt") == b"hello"
        assert tree.read_text("a/b.txt") == "hello"

    def test_read_missing_returns_none(self):
        assert WorkspaceTree().read("nope.txt") is None

    def test_bytes_content_kept_verbatim(self):
        tree = WorkspaceTree()
        tree.write("img.bin", b"\x00\xff")
        assert tree.read("img.bin") == b"\x00\xff"

    def test_writing_root_rejected(self):
        with pytest.raises(BoundaryViolation):
            WorkspaceTree().write("", "x")

    def test_history_records_operations_in_order(self):
        tree = WorkspaceTree()
        tree.write("a.txt", "1")
        tree.delete("a.txt")
        tree.write("b.txt", "2")
        assert tree.history == [("a.txt", "write"), ("a.txt", "delete"), ("b.txt", "write")]


class TestDelete:
    def test_delete_then_write_leaves_file_present(self):
        tree = WorkspaceTree()
        tree.write("a.txt", "old")
        tree.delete("a.txt")
        tree.write("a.txt", "new")
        assert tree.is_file("a.txt")
        assert tree.read_text("a.txt") == "new"

    def test_write_then_delete_leaves_file_absent(self):
        tree = WorkspaceTree()
        tree.write("a.txt", "content")
        tree.delete("a.txt")
        assert not tree.exists("a.txt")
        assert tree.read("a.txt") is None

    def test_delete_directory_is_recursive(self):
        tree = WorkspaceTree()
        tree.write("lib/a.ts", "a")
        tree.write("lib/nested/b.ts", "b")
        tree.write("other.ts", "c")
        tree.delete("lib")
        assert not tree.exists("lib")
        assert tree.exists("other.ts")

    def test_delete_missing_path_is_a_no_op(self):
        tree = WorkspaceTree()
        tree.delete("missing.txt")
        assert tree.list_changes() == []


class TestRename:
    def test_moves_content(self):
        tree = WorkspaceTree()
        tree.write("a.txt", "x")
        tree.rename("a.txt", "b/c.txt")
        assert not tree.exists("a.txt")
        assert tree.read_text("b/c.txt") == "x"

    def test_missing_source_raises(self):
        with pytest.raises(FileNotFoundError):
            WorkspaceTree().rename("a.txt", "b.txt")


# ---------------------------------------------------------------------------
# Directory structure
# ---------------------------------------------------------------------------


class TestStructure:
    def test_directories_derived_from_file_paths(self):
        tree = WorkspaceTree()
        tree.write("libs/a/src/index.ts", "")
        assert tree.exists("libs")
        assert tree.exists("libs/a/src")
        assert not tree.is_file("libs/a")

    def test_children_sorted(self):
        tree = WorkspaceTree()
        tree.write("d/b.ts", "")
        tree.write("d/a.ts", "")
        tree.write("d/sub/c.ts", "")
        assert tree.children("d") == ["a.ts", "b.ts", "sub"]

    def test_emptied_directory_disappears(self):
        tree = WorkspaceTree()
        tree.write("d/sub/only.ts", "")
        tree.delete("d/sub/only.ts")
        assert not tree.exists("d/sub")
        assert not tree.exists("d")
        assert tree.children("") == []

    def test_walk_files(self):
        tree = WorkspaceTree()
        tree.write("x/b.ts", "")
        tree.write("x/a/c.ts", "")
        assert list(tree.walk_files("x")) == ["x/a/c.ts", "x/b.ts"]

    def test_file_cannot_become_a_directory(self):
        tree = WorkspaceTree()
        tree.write("a", "file")
        with pytest.raises(PathConflictError) as exc_info:
            tree.write("a/b", "nested")
        assert exc_info.value.conflict == "a"
        assert not tree.exists("a/b")
        assert [c.path for c in tree.list_changes()] == ["a"]

    def test_directory_cannot_become_a_file(self):
        tree = WorkspaceTree()
        tree.write("a/b", "nested")
        with pytest.raises(PathConflictError):
            tree.write("a", "file")
        assert not tree.is_file("a")
        assert list(tree.walk_files()) == ["a/b"]

    def test_deleted_file_can_become_a_directory(self):
        tree = WorkspaceTree()
        tree.write("a", "file")
        tree.delete("a")
        tree.write("a/b", "nested")
        assert tree.children("a") == ["b"]

    def test_disk_file_ancestor_rejected(self, tmp_path: Path):
        (tmp_path / "README.md").write_text("# ws\n", encoding="utf-8")
        tree = WorkspaceTree(tmp_path)
        with pytest.raises(PathConflictError):
            tree.write("README.md/extra.ts", "")


# ---------------------------------------------------------------------------
# list_changes
# ---------------------------------------------------------------------------


class TestListChanges:
    def test_in_memory_writes_are_creates(self):
        tree = WorkspaceTree()
        tree.write("a.txt", "1")
        assert tree.list_changes() == [FileChange("a.txt", ChangeType.CREATE, b"1")]

    def test_created_then_deleted_produces_no_change(self):
        tree = WorkspaceTree()
        tree.write("a.txt", "1")
        tree.delete("a.txt")
        assert tree.list_changes() == []

    def test_ordered_by_last_operation(self):
        tree = WorkspaceTree()
        tree.write("a.txt", "1")
        tree.write("b.txt", "2")
        tree.write("a.txt", "3")
        assert [c.path for c in tree.list_changes()] == ["b.txt", "a.txt"]
        assert tree.list_changes()[1].content == b"3"


class TestDiskBackedTree:
    @pytest.fixture
    def disk_root(self, tmp_path: Path) -> Path:
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "main.ts").write_text("main", encoding="utf-8")
        (tmp_path / "README.md").write_text("readme", encoding="utf-8")
        return tmp_path

    def test_reads_fall_back_to_disk(self, disk_root: Path):
        tree = WorkspaceTree(disk_root)
        assert tree.read_text("src/main.ts") == "main"
        assert tree.exists("src")
        assert tree.children("") == ["README.md", "src"]

    def test_nothing_is_written_to_disk(self, disk_root: Path):
        tree = WorkspaceTree(disk_root)
        tree.write("new.ts", "x")
        tree.delete("README.md")
        assert not (disk_root / "new.ts").exists()
        assert (disk_root / "README.md").exists()

    def test_staged_delete_hides_disk_file(self, disk_root: Path):
        tree = WorkspaceTree(disk_root)
        tree.delete("src/main.ts")
        assert tree.read("src/main.ts") is None
        assert not tree.exists("src")

    def test_change_types(self, disk_root: Path):
        tree = WorkspaceTree(disk_root)
        tree.write("src/main.ts", "changed")
        tree.delete("README.md")
        tree.write("src/extra.ts", "extra")
        assert [(c.path, c.type) for c in tree.list_changes()] == [
            ("src/main.ts", ChangeType.UPDATE),
            ("README.md", ChangeType.DELETE),
            ("src/extra.ts", ChangeType.CREATE),
        ]

    def test_rewrite_with_disk_content_is_not_a_change(self, disk_root: Path):
        tree = WorkspaceTree(disk_root)
        tree.write("README.md", "readme")
        assert tree.list_changes() == []
