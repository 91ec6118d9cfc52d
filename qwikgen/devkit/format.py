"""Cosmetic formatting of staged files before commit.

Text files get LF line endings and exactly one final newline; nothing
inside a line or between lines is touched.  JSON files are re-serialised
with two-space indentation.  The semantic content of a file never changes.
"""

from __future__ import annotations

import json
import logging

from .json import serialize_json
from .tree import WorkspaceTree

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = (
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".json", ".md",
    ".css", ".scss", ".less", ".styl", ".html", ".yml", ".yaml",
)


def format_text(text: str) -> str:
    text = text.replace("\r\n", "\n")
    if not text.strip():
        return ""
    return text.rstrip("\n") + "\n"


def format_json(text: str) -> str:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # Comment-bearing JSON (tsconfig style) only gets its line endings normalised.
        return format_text(text)
    return serialize_json(data)


def format_files(tree: WorkspaceTree) -> list[str]:
    """Normalise every staged text file in place; returns the paths touched."""
    touched: list[str] = []
    for change in tree.list_changes():
        if change.content is None or not change.path.endswith(TEXT_EXTENSIONS):
            continue
        try:
            original = change.content.decode("utf-8")
        except UnicodeDecodeError:
            continue
        formatted = (
            format_json(original) if change.path.endswith(".json") else format_text(original)
        )
        if formatted != original:
            tree.write(change.path, formatted)
            touched.append(change.path)
    logger.debug("formatted %d file(s)", len(touched))
    return touched
