"""Shared pytest fixtures for the qwikgen test suite.

Provides reusable fixtures for:
- In-memory workspace trees seeded like a fresh Nx workspace
- Workspaces on disk (tmp_path) for commit and CLI tests
- A recording dependency installer
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from qwikgen.config import Settings
from qwikgen.devkit.json import write_json
from qwikgen.devkit.tree import WorkspaceTree
from qwikgen.scaffolder.dependencies import DependencySet


# ---------------------------------------------------------------------------
# Workspace contents
# ---------------------------------------------------------------------------

ROOT_PACKAGE_JSON: dict[str, Any] = {
    "name": "@proj/source",
    "version": "0.0.0",
    "license": "MIT",
    "dependencies": {},
    "devDependencies": {},
}

NX_JSON: dict[str, Any] = {
    "$schema": "./node_modules/nx/schemas/nx-schema.json",
    "targetDefaults": {"build": {"dependsOn": ["^build"]}},
}

TSCONFIG_BASE: dict[str, Any] = {
    "compileOnSave": False,
    "compilerOptions": {"baseUrl": ".", "paths": {}},
}


def create_tree_with_empty_workspace() -> WorkspaceTree:
    """Return an in-memory tree holding a bare workspace (no projects)."""
    tree = WorkspaceTree()
    write_json(tree, "package.json", ROOT_PACKAGE_JSON)
    write_json(tree, "nx.json", NX_JSON)
    write_json(tree, "tsconfig.base.json", TSCONFIG_BASE)
    return tree


# ---------------------------------------------------------------------------
# Trees & directories
# ---------------------------------------------------------------------------


@pytest.fixture
def tree() -> WorkspaceTree:
    """Fresh in-memory workspace tree."""
    return create_tree_with_empty_workspace()


@pytest.fixture
def make_tree():
    """Factory for additional fresh trees within one test."""
    return create_tree_with_empty_workspace


@pytest.fixture
def workspace_dir(tmp_path: Path) -> Path:
    """Bare workspace written to disk (auto-cleanup)."""
    root = tmp_path / "workspace"
    root.mkdir()
    for name, data in (
        ("package.json", ROOT_PACKAGE_JSON),
        ("nx.json", NX_JSON),
        ("tsconfig.base.json", TSCONFIG_BASE),
    ):
        (root / name).write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    yield root


@pytest.fixture
def settings(workspace_dir: Path) -> Settings:
    """Settings pointing at the on-disk workspace."""
    return Settings(workspace_root=workspace_dir)


# ---------------------------------------------------------------------------
# Installers
# ---------------------------------------------------------------------------


class RecordingInstaller:
    """Dependency installer that keeps every set it receives."""

    def __init__(self) -> None:
        self.installs: list[DependencySet] = []

    async def install(self, dependencies: DependencySet) -> None:
        self.installs.append(dependencies)


@pytest.fixture
def installer() -> RecordingInstaller:
    return RecordingInstaller()
