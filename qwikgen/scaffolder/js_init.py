"""Workspace-level TypeScript setup shared by every library."""

from __future__ import annotations

from typing import Any

from qwikgen.devkit.json import read_json, write_json
from qwikgen.devkit.tree import WorkspaceTree
from qwikgen.errors import ValidationError
from qwikgen.utils import offset_from_root

ROOT_TS_CONFIG = "tsconfig.base.json"

_BASE_COMPILER_OPTIONS: dict[str, Any] = {
    "rootDir": ".",
    "sourceMap": True,
    "declaration": False,
    "moduleResolution": "node",
    "emitDecoratorMetadata": True,
    "experimentalDecorators": True,
    "importHelpers": True,
    "target": "es2015",
    "module": "esnext",
    "lib": ["es2020", "dom"],
    "skipLibCheck": True,
    "skipDefaultLibCheck": True,
    "baseUrl": ".",
    "paths": {},
}


async def js_init_generator(tree: WorkspaceTree, options: Any = None) -> None:
    """Create ``tsconfig.base.json`` and the Prettier config when missing."""
    if not tree.exists(ROOT_TS_CONFIG):
        write_json(
            tree,
            ROOT_TS_CONFIG,
            {
                "compileOnSave": False,
                "compilerOptions": dict(_BASE_COMPILER_OPTIONS),
                "exclude": ["node_modules", "tmp"],
            },
        )
    if not tree.exists(".prettierrc"):
        write_json(tree, ".prettierrc", {"singleQuote": True})
    if not tree.exists(".prettierignore"):
        tree.write(
            ".prettierignore",
            "# Add files here to ignore them from prettier formatting\n/dist\n/coverage\n",
        )


def get_ts_config_paths(tree: WorkspaceTree) -> dict[str, list[str]]:
    if not tree.is_file(ROOT_TS_CONFIG):
        return {}
    compiler_options = read_json(tree, ROOT_TS_CONFIG).get("compilerOptions") or {}
    return compiler_options.get("paths") or {}


def add_ts_config_path(tree: WorkspaceTree, import_path: str, lookup: list[str]) -> None:
    """Map *import_path* to *lookup* in ``tsconfig.base.json``."""
    config = read_json(tree, ROOT_TS_CONFIG)
    compiler_options = config.setdefault("compilerOptions", {})
    paths = compiler_options.setdefault("paths", {})
    if import_path in paths:
        raise ValidationError("import_path", f"'{import_path}' is already in use")
    paths[import_path] = lookup
    compiler_options["paths"] = dict(sorted(paths.items()))
    write_json(tree, ROOT_TS_CONFIG, config)


def get_relative_path_to_root_ts_config(target: str) -> str:
    """Return the path from *target* back to ``tsconfig.base.json``."""
    return offset_from_root(target) + ROOT_TS_CONFIG
