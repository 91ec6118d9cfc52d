"""Apply a finished tree's change log to a directory on disk."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from .tree import ChangeType, FileChange, WorkspaceTree

logger = logging.getLogger(__name__)


def _prune_empty_parents(root: Path, target: Path) -> None:
    parent = target.parent
    while parent != root and root in parent.parents:
        if not parent.is_dir() or any(parent.iterdir()):
            break
        parent.rmdir()
        parent = parent.parent


def _apply(root: Path, changes: list[FileChange]) -> None:
    for change in changes:
        target = root / change.path
        if change.type is ChangeType.DELETE:
            target.unlink(missing_ok=True)
            _prune_empty_parents(root, target)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(change.content or b"")


async def flush_changes(tree: WorkspaceTree, root: str | Path | None = None) -> list[FileChange]:
    """Write every net change of *tree* below *root* (defaults to ``tree.root``).

    Returns the list of changes that were applied.
    """
    target = Path(root) if root is not None else tree.root
    if target is None:
        raise ValueError("flush_changes needs a root directory for an in-memory tree")
    changes = tree.list_changes()
    await asyncio.to_thread(_apply, target, changes)
    logger.info("committed %d change(s) to %s", len(changes), target)
    return changes
