"""Qwik component generator.

Renders a component, its scoped stylesheet and, optionally, a unit test and a
story into an existing project, then exports it from the project's
``src/index.ts``.
"""

from __future__ import annotations

import logging
import posixpath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from qwikgen.devkit.format import format_files
from qwikgen.devkit.projects import ProjectConfiguration, read_project_configuration
from qwikgen.devkit.tree import WorkspaceTree, join_path_fragments, normalize_path
from qwikgen.errors import ProjectNotFoundError, ValidationError
from qwikgen.utils import names

from .normalize import VALID_NAME, Style, parse_request
from .templates import generate_files

logger = logging.getLogger(__name__)


class ComponentRequest(BaseModel):
    """Raw component request."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str
    project: str
    directory: str | None = None
    style: Style = "css"
    skip_tests: bool = Field(default=False, alias="skipTests")
    generate_stories: bool = Field(default=False, alias="generateStories")
    flat: bool = False
    export: bool = True
    skip_format: bool = Field(default=False, alias="skipFormat")


class NormalizedComponentOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    project: str
    source_root: str
    target_dir: str
    style: Style
    skip_tests: bool
    generate_stories: bool
    export: bool
    skip_format: bool
    file_name: str
    class_name: str
    property_name: str


def _source_root(config: ProjectConfiguration) -> str:
    return config.source_root or join_path_fragments(config.root, "src")


def normalize_component_options(
    tree: WorkspaceTree, raw: ComponentRequest | dict
) -> NormalizedComponentOptions:
    request = parse_request(ComponentRequest, raw)

    if not VALID_NAME.match(request.name.strip()):
        raise ValidationError("name", f"'{request.name}' is not a valid component name")

    try:
        config = read_project_configuration(tree, request.project)
    except ProjectNotFoundError as exc:
        raise ValidationError("project", f"project '{request.project}' does not exist") from exc

    if request.generate_stories and "storybook" not in config.targets:
        raise ValidationError(
            "generate_stories",
            f"project '{request.project}' has no storybook configuration",
        )

    variants = names(request.name.strip())
    source_root = _source_root(config)
    parts = ["lib"]
    if request.directory:
        parts.append(request.directory.strip("/"))
    if not request.flat:
        parts.append(variants["file_name"])
    target_dir = normalize_path(join_path_fragments(*parts), source_root)

    return NormalizedComponentOptions(
        project=request.project,
        source_root=source_root,
        target_dir=target_dir,
        style=request.style,
        skip_tests=request.skip_tests,
        generate_stories=request.generate_stories,
        export=request.export,
        skip_format=request.skip_format,
        file_name=variants["file_name"],
        class_name=variants["class_name"],
        property_name=variants["property_name"],
    )


def add_export(tree: WorkspaceTree, options: NormalizedComponentOptions) -> None:
    """Export the component from the project's ``index.ts`` (once)."""
    index_path = join_path_fragments(options.source_root, "index.ts")
    content = tree.read_text(index_path)
    if content is None:
        return
    module = posixpath.relpath(
        join_path_fragments(options.target_dir, options.file_name), options.source_root
    )
    line = f"export * from './{module}';"
    if line in content.splitlines():
        return
    if content and not content.endswith("\n"):
        content += "\n"
    tree.write(index_path, f"{content}{line}\n")


async def component_generator(tree: WorkspaceTree, schema: ComponentRequest | dict) -> None:
    """Generate a component inside an existing project."""
    options = normalize_component_options(tree, schema)

    skip_patterns: list[str] = []
    if options.skip_tests:
        skip_patterns.append("*.spec.tsx.j2")
    if not options.generate_stories:
        skip_patterns.append("*.stories.tsx.j2")
    if options.style == "none":
        skip_patterns.append("*.__style__.j2")

    # ``style`` doubles as the ``__style__`` file extension token.
    context: dict[str, Any] = options.model_dump()
    await generate_files(
        tree, "component", options.target_dir, context, skip_patterns=skip_patterns
    )

    if options.export:
        add_export(tree, options)

    if not options.skip_format:
        format_files(tree)
    logger.debug("generated component %s in %s", options.class_name, options.target_dir)
