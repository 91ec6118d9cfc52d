"""Project configuration records stored in the workspace tree.

Each project lives in ``<root>/project.json``.  The tree keeps a typed
``name -> root`` side table (:attr:`WorkspaceTree.projects`) so lookups are
always by explicit key; for trees layered over an existing workspace the
table is filled on first use by scanning for ``project.json`` files.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field

from qwikgen.errors import ProjectNotFoundError, ValidationError
from qwikgen.utils import deep_merge

from .json import read_json, write_json
from .tree import WorkspaceTree, join_path_fragments

logger = logging.getLogger(__name__)

_IGNORED_DIRS = {"node_modules", "dist", ".git", "tmp"}


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TargetConfiguration(BaseModel):
    """A named target: executor identifier, options and per-environment overrides."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    executor: str
    outputs: list[str] | None = None
    options: dict[str, Any] = Field(default_factory=dict)
    configurations: dict[str, dict[str, Any]] = Field(default_factory=dict)
    depends_on: list[Any] | None = Field(default=None, alias="dependsOn")

    def dump(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, exclude_defaults=True)


class ProjectConfiguration(BaseModel):
    """Pydantic model of a ``project.json`` file."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    root: str
    source_root: str | None = Field(default=None, alias="sourceRoot")
    project_type: Literal["library", "application"] = Field(
        default="library", alias="projectType"
    )
    tags: list[str] = Field(default_factory=list)
    targets: dict[str, TargetConfiguration] = Field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        """Return the ``project.json`` payload (``root`` is implied by location)."""
        payload = self.model_dump(by_alias=True, exclude_none=True, exclude={"root"})
        payload["targets"] = {name: target.dump() for name, target in self.targets.items()}
        ordered = {"name": payload.pop("name")}
        ordered["$schema"] = f"{_offset(self.root)}node_modules/nx/schemas/project-schema.json"
        ordered.update(payload)
        return ordered


def _offset(root: str) -> str:
    return "../" * len([p for p in root.split("/") if p])


# ---------------------------------------------------------------------------
# Structural merge
# ---------------------------------------------------------------------------


def merge_targets(
    existing: Mapping[str, TargetConfiguration],
    new: Mapping[str, TargetConfiguration | Mapping[str, Any]],
) -> dict[str, TargetConfiguration]:
    """Structurally merge *new* target definitions into *existing* ones.

    Targets that appear on only one side are kept unchanged.  A target that
    appears on both sides is deep-merged key by key, values from *new*
    winning on conflicting leaves.
    """
    merged: dict[str, TargetConfiguration] = dict(existing)
    for name, target in new.items():
        incoming = target.dump() if isinstance(target, TargetConfiguration) else dict(target)
        if name in merged:
            incoming = deep_merge(merged[name].dump(), incoming)
        merged[name] = TargetConfiguration.model_validate(incoming)
    return merged


# ---------------------------------------------------------------------------
# Read / write
# ---------------------------------------------------------------------------


def _discover_projects(tree: WorkspaceTree, directory: str = "") -> None:
    for name in tree.children(directory):
        if name in _IGNORED_DIRS:
            continue
        path = join_path_fragments(directory, name)
        if name == "project.json" and tree.is_file(path):
            data = read_json(tree, path)
            project_name = data.get("name") or directory.split("/")[-1]
            tree.projects.setdefault(project_name, directory)
        elif not tree.is_file(path):
            _discover_projects(tree, path)


def get_projects(tree: WorkspaceTree) -> dict[str, str]:
    """Return the ``name -> root`` table, discovering on-disk projects once."""
    if not tree.projects_scanned:
        tree.projects_scanned = True
        _discover_projects(tree)
    return {
        name: root
        for name, root in tree.projects.items()
        if tree.is_file(join_path_fragments(root, "project.json"))
    }


def add_project_configuration(tree: WorkspaceTree, config: ProjectConfiguration) -> None:
    """Register a new project; fails if the name or root is already taken."""
    projects = get_projects(tree)
    if config.name in projects:
        raise ValidationError("name", f"project '{config.name}' already exists")
    if tree.exists(join_path_fragments(config.root, "project.json")):
        raise ValidationError("directory", f"'{config.root}' already contains a project")
    tree.projects[config.name] = config.root
    write_json(tree, join_path_fragments(config.root, "project.json"), config.to_json())
    logger.debug("registered project %s at %s", config.name, config.root)


def read_project_configuration(tree: WorkspaceTree, name: str) -> ProjectConfiguration:
    root = get_projects(tree).get(name)
    if root is None:
        raise ProjectNotFoundError(name)
    data = read_json(tree, join_path_fragments(root, "project.json"))
    data.pop("$schema", None)
    return ProjectConfiguration.model_validate({**data, "root": root})


def update_project_configuration(
    tree: WorkspaceTree, name: str, config: ProjectConfiguration
) -> None:
    """Overwrite the stored configuration of an existing project."""
    root = get_projects(tree).get(name)
    if root is None:
        raise ProjectNotFoundError(name)
    write_json(tree, join_path_fragments(root, "project.json"), config.to_json())


def add_targets(
    tree: WorkspaceTree,
    name: str,
    targets: Mapping[str, TargetConfiguration | Mapping[str, Any]],
) -> ProjectConfiguration:
    """Merge *targets* into project *name* and persist the result."""
    config = read_project_configuration(tree, name)
    config.targets = merge_targets(config.targets, targets)
    update_project_configuration(tree, name, config)
    return config
