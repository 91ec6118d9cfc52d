"""In-memory workspace tree.

All reads and writes performed while planning a scaffolding run go through a
:class:`WorkspaceTree`.  The tree stages every mutation in memory and can be
backed by an existing directory on disk, which is only ever *read* for paths
that have not been staged yet.  Nothing is written to durable storage here;
see :mod:`qwikgen.devkit.commit` for applying the finished change log.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator

from qwikgen.errors import BoundaryViolation, PathConflictError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Change records
# ---------------------------------------------------------------------------


class ChangeType(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class FileChange:
    """Net change for one path, as handed to the commit collaborator."""

    path: str
    type: ChangeType
    content: bytes | None = None


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def normalize_path(path: str | Path, boundary: str = "") -> str:
    """Return *path* as a normalized, workspace-relative POSIX path.

    ``boundary`` is a normalized directory the result must stay inside (the
    workspace root when empty).  Absolute paths and paths that climb out of
    the boundary with ``..`` raise :class:`BoundaryViolation`.

    Examples::

        normalize_path("libs/./my-lib//src/") -> "libs/my-lib/src"
        normalize_path("libs/my-lib/../other") -> "libs/other"
    """
    raw = str(path).replace("\\", "/")
    if raw.startswith("/") or (len(raw) > 1 and raw[1] == ":"):
        raise BoundaryViolation(raw, boundary)

    joined = posixpath.join(boundary, raw) if boundary else raw
    normalized = posixpath.normpath(joined) if joined else "."
    if normalized == ".":
        normalized = ""

    if normalized == ".." or normalized.startswith("../"):
        raise BoundaryViolation(raw, boundary)
    if boundary and not (normalized == boundary or normalized.startswith(boundary + "/")):
        raise BoundaryViolation(raw, boundary)
    return normalized


def join_path_fragments(*fragments: str) -> str:
    """Join path fragments with ``/`` and normalize the result."""
    parts = [str(f) for f in fragments if f not in ("", None)]
    if not parts:
        return ""
    return posixpath.normpath(posixpath.join(*parts))


def _parent(path: str) -> str:
    return posixpath.dirname(path)


# ---------------------------------------------------------------------------
# WorkspaceTree
# ---------------------------------------------------------------------------


class WorkspaceTree:
    """Staged, in-memory view of a workspace directory.

    Staged entries map a normalized path to file content (``bytes``) or to
    ``None`` (a tombstone for a deleted path).  A parent -> children index of
    live staged files keeps ``exists``/``children`` cheap for directories
    that only exist in memory.

    Args:
        root: Optional directory on disk the tree is layered over.  When
            ``None`` the tree starts out empty.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root).resolve() if root is not None else None
        self._staged: dict[str, bytes | None] = {}
        self._children: dict[str, set[str]] = {}
        self._last_op: dict[str, int] = {}
        self._seq = 0
        self.history: list[tuple[str, str]] = []
        # Typed name -> root side table for project configurations.
        self.projects: dict[str, str] = {}
        self.projects_scanned = self.root is None

    def __repr__(self) -> str:
        return f"WorkspaceTree(root={str(self.root) if self.root else None!r})"

    # -- Disk fallback -----------------------------------------------------

    def _disk_path(self, path: str) -> Path | None:
        if self.root is None:
            return None
        return self.root / path if path else self.root

    def _disk_is_file(self, path: str) -> bool:
        disk = self._disk_path(path)
        return disk is not None and disk.is_file()

    def _disk_is_dir(self, path: str) -> bool:
        disk = self._disk_path(path)
        return disk is not None and disk.is_dir()

    # -- Reads -------------------------------------------------------------

    def read(self, path: str | Path) -> bytes | None:
        """Return the current content of *path*, or ``None`` if absent."""
        key = normalize_path(path)
        if key in self._staged:
            return self._staged[key]
        if self._disk_is_file(key):
            return self._disk_path(key).read_bytes()  # type: ignore[union-attr]
        return None

    def read_text(self, path: str | Path, encoding: str = "utf-8") -> str | None:
        content = self.read(path)
        return content.decode(encoding) if content is not None else None

    def is_file(self, path: str | Path) -> bool:
        key = normalize_path(path)
        if key in self._staged:
            return self._staged[key] is not None
        return self._disk_is_file(key)

    def exists(self, path: str | Path) -> bool:
        """Return ``True`` if *path* is a live file or a non-empty directory."""
        key = normalize_path(path)
        if key == "":
            return True
        if key in self._staged:
            return self._staged[key] is not None
        if self._children.get(key):
            return True
        if self._disk_is_file(key):
            return True
        if self._disk_is_dir(key):
            return any(True for _ in self._disk_children(key))
        return False

    def _disk_children(self, key: str) -> Iterator[str]:
        disk = self._disk_path(key)
        if disk is None or not disk.is_dir():
            return
        for entry in sorted(disk.iterdir()):
            child = f"{key}/{entry.name}" if key else entry.name
            if self.exists(child):
                yield entry.name

    def children(self, path: str | Path) -> list[str]:
        """Return the names of the live entries directly under *path*."""
        key = normalize_path(path)
        if self.is_file(key):
            return []
        names = set(self._children.get(key, ()))
        names.update(self._disk_children(key))
        return sorted(names)

    def walk_files(self, path: str | Path = "") -> Iterator[str]:
        """Yield every live file path below *path*, depth first, sorted."""
        key = normalize_path(path)
        if self.is_file(key):
            yield key
            return
        for name in self.children(key):
            yield from self.walk_files(f"{key}/{name}" if key else name)

    # -- Writes ------------------------------------------------------------

    def _record(self, key: str, operation: str) -> None:
        self._seq += 1
        self._last_op[key] = self._seq
        self.history.append((key, operation))

    def _link(self, key: str) -> None:
        child = key
        while child:
            parent = _parent(child)
            siblings = self._children.setdefault(parent, set())
            name = posixpath.basename(child)
            if name in siblings:
                break
            siblings.add(name)
            child = parent

    def _unlink(self, key: str) -> None:
        child = key
        while child:
            parent = _parent(child)
            siblings = self._children.get(parent)
            if not siblings:
                break
            siblings.discard(posixpath.basename(child))
            if siblings or parent == "":
                break
            del self._children[parent]
            child = parent

    def _check_kind(self, key: str) -> None:
        ancestor = _parent(key)
        while ancestor:
            if self.is_file(ancestor):
                raise PathConflictError(key, ancestor)
            ancestor = _parent(ancestor)
        if not self.is_file(key) and self.children(key):
            raise PathConflictError(key, key)

    def write(self, path: str | Path, content: str | bytes) -> None:
        """Stage *content* at *path*, creating or overwriting it.

        Raises :class:`PathConflictError` when an ancestor of *path* is a file
        or *path* is a non-empty directory.
        """
        key = normalize_path(path)
        if key == "":
            raise BoundaryViolation(str(path), "")
        self._check_kind(key)
        data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        self._staged[key] = data
        self._link(key)
        self._record(key, "write")
        logger.debug("staged write %s (%d bytes)", key, len(data))

    def delete(self, path: str | Path) -> None:
        """Stage the removal of *path*; directories are removed recursively."""
        key = normalize_path(path)
        if key == "":
            raise BoundaryViolation(str(path), "")
        if not self.is_file(key):
            for descendant in list(self.walk_files(key)):
                self._delete_file(descendant)
            return
        self._delete_file(key)

    def _delete_file(self, key: str) -> None:
        self._staged[key] = None
        self._unlink(key)
        self._record(key, "delete")
        logger.debug("staged delete %s", key)

    def rename(self, source: str | Path, destination: str | Path) -> None:
        content = self.read(source)
        if content is None:
            raise FileNotFoundError(str(source))
        self.write(destination, content)
        self.delete(source)

    # -- Change log --------------------------------------------------------

    def list_changes(self) -> list[FileChange]:
        """Return the net change per path, ordered by each path's last operation.

        Paths created and deleted again inside the run, and paths rewritten
        with their on-disk content, produce no change.
        """
        changes: list[FileChange] = []
        for key in sorted(self._last_op, key=self._last_op.__getitem__):
            content = self._staged[key]
            on_disk = self._disk_is_file(key)
            if content is None:
                if on_disk:
                    changes.append(FileChange(key, ChangeType.DELETE))
                continue
            if not on_disk:
                changes.append(FileChange(key, ChangeType.CREATE, content))
            elif self._disk_path(key).read_bytes() != content:  # type: ignore[union-attr]
                changes.append(FileChange(key, ChangeType.UPDATE, content))
        return changes
