"""Build and test target wiring for Qwik libraries."""

from __future__ import annotations

from typing import Any

from qwikgen.devkit.projects import add_targets
from qwikgen.devkit.tree import WorkspaceTree
from qwikgen.utils import offset_from_root

from .normalize import NormalizedLibraryOptions


def get_qwik_lib_project_targets(options: NormalizedLibraryOptions) -> dict[str, dict[str, Any]]:
    """Return the ``build`` / ``test`` targets enabled by *options*."""
    root = options.project_root
    targets: dict[str, dict[str, Any]] = {}

    if options.buildable:
        targets["build"] = {
            "executor": "@nx/vite:build",
            "outputs": ["{options.outputPath}"],
            "options": {
                "outputPath": f"dist/{root}",
                "configFile": f"{root}/vite.config.ts",
                "mode": "lib",
            },
        }

    if options.setup_vitest:
        targets["test"] = {
            "executor": "@nx/vite:test",
            "outputs": [f"{{workspaceRoot}}/coverage/{root}"],
            "options": {
                "passWithNoTests": True,
                "reportsDirectory": f"{offset_from_root(root)}coverage/{root}",
            },
        }

    return targets


async def configure_vite(tree: WorkspaceTree, options: NormalizedLibraryOptions) -> None:
    """Merge the library's build and test targets into its project configuration."""
    targets = get_qwik_lib_project_targets(options)
    if targets:
        add_targets(tree, options.project_name, targets)
