"""ESLint wiring for generated projects."""

from __future__ import annotations

import logging
from typing import Any

from qwikgen.devkit.json import write_json
from qwikgen.devkit.projects import add_targets, read_project_configuration
from qwikgen.devkit.tree import WorkspaceTree, join_path_fragments
from qwikgen.utils import offset_from_root

logger = logging.getLogger(__name__)

ROOT_ESLINT_CONFIG = ".eslintrc.json"

_ROOT_CONFIG: dict[str, Any] = {
    "root": True,
    "ignorePatterns": ["**/*"],
    "plugins": ["@nx"],
    "overrides": [
        {
            "files": ["*.ts", "*.tsx", "*.js", "*.jsx"],
            "rules": {
                "@nx/enforce-module-boundaries": [
                    "error",
                    {
                        "enforceBuildableLibDependency": True,
                        "allow": [],
                        "depConstraints": [{"sourceTag": "*", "onlyDependOnLibsWithTags": ["*"]}],
                    },
                ]
            },
        },
        {"files": ["*.ts", "*.tsx"], "extends": ["plugin:@nx/typescript"], "rules": {}},
        {"files": ["*.js", "*.jsx"], "extends": ["plugin:@nx/javascript"], "rules": {}},
    ],
}


def project_eslint_config(root: str, is_lib: bool) -> dict[str, Any]:
    """Return the ``.eslintrc.json`` payload for the project at *root*."""
    ignore = ["!**/*", "node_modules"]
    if is_lib:
        ignore.append("dist")
    else:
        ignore.extend(["dist", "tmp", "server"])
    return {
        "extends": [
            "plugin:qwik/recommended",
            f"{offset_from_root(root)}{ROOT_ESLINT_CONFIG}",
        ],
        "ignorePatterns": ignore,
        "overrides": [
            {
                "files": ["*.ts", "*.tsx", "*.js", "*.jsx"],
                "rules": {},
            },
            {
                "files": ["*.ts", "*.tsx"],
                "parserOptions": {"project": [f"{root}/tsconfig.*?.json"]},
                "rules": {"@typescript-eslint/no-explicit-any": "off"},
            },
            {"files": ["*.js", "*.jsx"], "rules": {}},
        ],
    }


async def configure_eslint(tree: WorkspaceTree, project_name: str, is_lib: bool = True) -> None:
    """Write the project ESLint config and merge a ``lint`` target into the project."""
    config = read_project_configuration(tree, project_name)

    if not tree.exists(ROOT_ESLINT_CONFIG):
        write_json(tree, ROOT_ESLINT_CONFIG, _ROOT_CONFIG)

    write_json(
        tree,
        join_path_fragments(config.root, ROOT_ESLINT_CONFIG),
        project_eslint_config(config.root, is_lib),
    )
    add_targets(
        tree,
        project_name,
        {
            "lint": {
                "executor": "@nx/eslint:lint",
                "outputs": ["{options.outputFile}"],
                "options": {
                    "lintFilePatterns": [f"{config.root}/**/*.{{ts,tsx,js,jsx}}"],
                },
            }
        },
    )
    logger.debug("configured eslint for %s", project_name)
