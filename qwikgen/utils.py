"""Shared utility functions for qwikgen.

Provides name-casing helpers, structural merging of configuration records,
JSON file I/O, and Rich-based console and logging output.  Every public
function is side-effect-free unless its name says otherwise.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def sanitize_name(name: str) -> str:
    """Convert an arbitrary name to a kebab-case file name.

    * Splits camelCase / PascalCase words.
    * Lowercases the input.
    * Replaces spaces, underscores and other separators with hyphens.
    * Collapses consecutive hyphens and strips leading/trailing hyphens.

    Examples::

        sanitize_name("My Button") -> "my-button"
        sanitize_name("myButton")  -> "my-button"
        sanitize_name("my_lib")    -> "my-lib"
    """
    split = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", name.strip())
    result = re.sub(r"[^a-zA-Z0-9]", "-", split.lower())
    result = re.sub(r"-+", "-", result)
    return result.strip("-")


def _words(name: str) -> list[str]:
    return [w for w in sanitize_name(name).split("-") if w]


def names(name: str) -> dict[str, str]:
    """Return the casing variants of *name* used by templates.

    Examples::

        names("my-lib") -> {
            "name": "my-lib",
            "class_name": "MyLib",
            "property_name": "myLib",
            "constant_name": "MY_LIB",
            "file_name": "my-lib",
        }
    """
    words = _words(name)
    class_name = "".join(w.capitalize() for w in words)
    property_name = class_name[:1].lower() + class_name[1:]
    return {
        "name": name,
        "class_name": class_name,
        "property_name": property_name,
        "constant_name": "_".join(w.upper() for w in words),
        "file_name": "-".join(words),
    }


def offset_from_root(path: str) -> str:
    """Return the ``../`` prefix leading from *path* back to the workspace root.

    Examples::

        offset_from_root("libs/my-lib") -> "../../"
        offset_from_root("")            -> "./"
    """
    parts = [p for p in path.split("/") if p and p != "."]
    if not parts:
        return "./"
    return "../" * len(parts)


# ---------------------------------------------------------------------------
# Structural merge
# ---------------------------------------------------------------------------


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge two mappings by key.

    Keys present on only one side are kept as they are.  When both sides hold
    a mapping for the same key the two are merged recursively; otherwise the
    value from *override* wins.  Neither input is modified.
    """
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    raw = Path(path).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        return {"_root": data}
    return data


async def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> None:
    """Save data as pretty-printed JSON.

    Parent directories are created automatically.  The write itself runs in
    a thread-pool executor to avoid blocking the event loop.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False, default=str) + "\n"

    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, file_path.write_text, content, "utf-8")


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def configure_logging(verbose: bool = False) -> None:
    """Route ``logging`` output through a Rich handler on the shared console."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
