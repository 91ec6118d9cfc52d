"""JSON helpers operating on a :class:`~qwikgen.devkit.tree.WorkspaceTree`."""

from __future__ import annotations

import json
from typing import Any, Callable

from .tree import WorkspaceTree


def serialize_json(data: Any) -> str:
    """Serialise *data* the way every staged JSON file is written."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def read_json(tree: WorkspaceTree, path: str) -> Any:
    """Parse the JSON file at *path*.

    Raises:
        FileNotFoundError: If *path* does not exist in the tree.
        ValueError: If the file is not valid JSON.
    """
    text = tree.read_text(path)
    if text is None:
        raise FileNotFoundError(path)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Cannot parse {path}: {exc}") from exc


def write_json(tree: WorkspaceTree, path: str, data: Any) -> None:
    tree.write(path, serialize_json(data))


def update_json(
    tree: WorkspaceTree,
    path: str,
    updater: Callable[[Any], Any],
) -> Any:
    """Read *path*, pass it through *updater* and write the result back."""
    updated = updater(read_json(tree, path))
    write_json(tree, path, updated)
    return updated
