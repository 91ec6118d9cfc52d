"""Storybook configuration generator.

Adds a ``.storybook`` folder, a ``tsconfig.storybook.json`` and the
``storybook`` / ``build-storybook`` targets to an existing project.  The
preview configuration wraps stories in the Qwik City decorator depending on
``qwik_city_support``:

* ``"true"``  - always add the decorator,
* ``"false"`` - never add it,
* ``"auto"``  - add it when the project looks like a Qwik City project
  (an application, a ``src/routes`` folder, or a ``@builder.io/qwik-city``
  dependency in the project's ``package.json``).
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from qwikgen.config import Settings, VersionConfig
from qwikgen.devkit.format import format_files
from qwikgen.devkit.json import read_json, write_json
from qwikgen.devkit.projects import (
    ProjectConfiguration,
    add_targets,
    read_project_configuration,
)
from qwikgen.devkit.tasks import GeneratorCallback
from qwikgen.devkit.tree import WorkspaceTree, join_path_fragments
from qwikgen.errors import ProjectNotFoundError, ValidationError

from .dependencies import DependencyInstaller, add_dependencies_to_package_json
from .normalize import QwikCitySupport, parse_request
from .templates import generate_files

logger = logging.getLogger(__name__)

STORYBOOK_DIR = ".storybook"
STORYBOOK_PORT = 4400


class StorybookConfigurationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str
    qwik_city_support: QwikCitySupport = Field(default="auto", alias="qwikCitySupport")
    skip_format: bool = Field(default=False, alias="skipFormat")


def _source_root(config: ProjectConfiguration) -> str:
    return config.source_root or join_path_fragments(config.root, "src")


def is_qwik_city_project(tree: WorkspaceTree, config: ProjectConfiguration) -> bool:
    if config.project_type == "application":
        return True
    if tree.exists(join_path_fragments(_source_root(config), "routes")):
        return True
    package_json_path = join_path_fragments(config.root, "package.json")
    if tree.is_file(package_json_path):
        package_json = read_json(tree, package_json_path)
        for section in ("dependencies", "devDependencies", "peerDependencies"):
            if "@builder.io/qwik-city" in (package_json.get(section) or {}):
                return True
    return False


def resolve_qwik_city_support(
    tree: WorkspaceTree, config: ProjectConfiguration, policy: QwikCitySupport
) -> bool:
    if policy == "auto":
        return is_qwik_city_project(tree, config)
    return policy == "true"


def storybook_targets(config: ProjectConfiguration) -> dict[str, dict[str, Any]]:
    config_dir = join_path_fragments(config.root, STORYBOOK_DIR)
    return {
        "storybook": {
            "executor": "@nx/storybook:storybook",
            "options": {"port": STORYBOOK_PORT, "configDir": config_dir},
            "configurations": {"ci": {"quiet": True}},
        },
        "build-storybook": {
            "executor": "@nx/storybook:build",
            "outputs": ["{options.outputDir}"],
            "options": {
                "configDir": config_dir,
                "outputDir": f"dist/storybook/{config.name}",
            },
            "configurations": {"ci": {"quiet": True}},
        },
    }


def storybook_dependencies(versions: VersionConfig) -> dict[str, str]:
    return {
        "@storybook/addon-essentials": versions.storybook,
        "@storybook/builder-vite": versions.storybook,
        "storybook": versions.storybook,
        "storybook-framework-qwik": versions.storybook_framework_qwik,
    }


def _add_ts_config_reference(tree: WorkspaceTree, config: ProjectConfiguration) -> None:
    ts_config_path = join_path_fragments(config.root, "tsconfig.json")
    if not tree.is_file(ts_config_path):
        return
    ts_config = read_json(tree, ts_config_path)
    references = ts_config.setdefault("references", [])
    entry = {"path": "./tsconfig.storybook.json"}
    if entry not in references:
        references.append(entry)
        write_json(tree, ts_config_path, ts_config)


async def configure_storybook(
    tree: WorkspaceTree,
    request: StorybookConfigurationRequest,
    versions: VersionConfig,
    installer: DependencyInstaller | None = None,
) -> GeneratorCallback:
    try:
        config = read_project_configuration(tree, request.name)
    except ProjectNotFoundError as exc:
        raise ValidationError("name", f"project '{request.name}' does not exist") from exc

    if "storybook" in config.targets:
        raise ValidationError("name", f"project '{request.name}' already has storybook configured")

    qwik_city = resolve_qwik_city_support(tree, config, request.qwik_city_support)
    context = {
        "project_name": config.name,
        "project_root": config.root,
        "storybook_dir": STORYBOOK_DIR,
        "qwik_city": qwik_city,
        "qwik_city_support": request.qwik_city_support,
    }
    await generate_files(tree, "storybook", config.root, context)
    _add_ts_config_reference(tree, config)
    add_targets(tree, config.name, storybook_targets(config))

    logger.debug(
        "configured storybook for %s (qwik city decorator: %s)", config.name, qwik_city
    )
    return add_dependencies_to_package_json(
        tree, {}, storybook_dependencies(versions), installer
    )


async def storybook_configuration_generator(
    tree: WorkspaceTree,
    schema: StorybookConfigurationRequest | dict,
    *,
    installer: DependencyInstaller | None = None,
    settings: Settings | None = None,
) -> GeneratorCallback:
    """Configure Storybook for an existing project; returns the install callback."""
    request = parse_request(StorybookConfigurationRequest, schema)

    settings = settings or Settings()
    callback = await configure_storybook(tree, request, settings.versions, installer)
    if not request.skip_format:
        format_files(tree)
    return callback
