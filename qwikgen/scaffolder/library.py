"""Qwik library generator.

Composes the individual generator units into one scaffolding run:

1. workspace TypeScript setup,
2. the base library (project.json, tsconfig files, entry point),
3. the Qwik library files layered over it,
4. Storybook configuration (optional),
5. a first component (optional),
6. build / test targets,
7. ESLint configuration (optional),
8. the shared Qwik dev dependencies.

Optional units are picked once from the normalized flags when the step list
is built.  Every unit runs against the same tree; the deferred callbacks they
return are combined into the single runner handed back to the caller.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any

from qwikgen.config import Settings
from qwikgen.devkit.format import format_files
from qwikgen.devkit.projects import ProjectConfiguration, add_project_configuration
from qwikgen.devkit.tasks import GeneratorCallback, GeneratorStep, SerialTaskRunner, run_generators
from qwikgen.devkit.tree import WorkspaceTree, join_path_fragments
from qwikgen.utils import names, offset_from_root

from .component import ComponentRequest, component_generator
from .dependencies import DependencyInstaller, add_common_qwik_dependencies
from .eslint import configure_eslint
from .js_init import add_ts_config_path, get_relative_path_to_root_ts_config, js_init_generator
from .normalize import LibraryRequest, NormalizedLibraryOptions, normalize_options
from .storybook import StorybookConfigurationRequest, configure_storybook
from .templates import generate_files, get_renderer
from .vite import configure_vite

logger = logging.getLogger(__name__)


def _template_context(options: NormalizedLibraryOptions) -> dict[str, Any]:
    return {
        **options.model_dump(exclude={"versions"}),
        **names(options.project_name),
        "offset_from_root": offset_from_root(options.project_root),
        "root_ts_config_path": get_relative_path_to_root_ts_config(options.project_root),
    }


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------


async def base_library_generator(tree: WorkspaceTree, options: NormalizedLibraryOptions) -> None:
    """Register the project and write the framework-neutral library skeleton."""
    add_project_configuration(
        tree,
        ProjectConfiguration(
            name=options.project_name,
            root=options.project_root,
            source_root=options.source_root,
            project_type="library",
            tags=list(options.parsed_tags),
        ),
    )
    await generate_files(tree, "base-library", options.project_root, _template_context(options))
    add_ts_config_path(
        tree, options.import_path, [join_path_fragments(options.source_root, "index.ts")]
    )


def ensure_root_tsx_exists(tree: WorkspaceTree, options: NormalizedLibraryOptions) -> None:
    path = join_path_fragments(options.source_root, "root.tsx")
    if tree.exists(path):
        return
    tree.write(path, get_renderer().render("library-root/root.tsx.j2", _template_context(options)))


async def add_qwik_library_files(tree: WorkspaceTree, options: NormalizedLibraryOptions) -> None:
    """Replace the base library files with their Qwik variants."""
    root = options.project_root
    context = _template_context(options)

    tree.delete(join_path_fragments(options.source_root, "lib", f"{context['file_name']}.ts"))
    await generate_files(tree, "library", root, context)
    ensure_root_tsx_exists(tree, options)

    if not options.setup_vitest:
        tree.delete(join_path_fragments(root, "tsconfig.spec.json"))

    if not options.buildable:
        tree.delete(join_path_fragments(root, "package.json"))
        if not options.setup_vitest:
            tree.delete(join_path_fragments(root, "vite.config.ts"))


async def add_library_storybook(
    tree: WorkspaceTree,
    options: NormalizedLibraryOptions,
    installer: DependencyInstaller | None = None,
) -> GeneratorCallback:
    request = StorybookConfigurationRequest(
        name=options.project_name,
        qwik_city_support=options.qwik_city_support,
        skip_format=True,
    )
    return await configure_storybook(tree, request, options.versions, installer)


async def add_library_component(tree: WorkspaceTree, options: NormalizedLibraryOptions) -> None:
    await component_generator(
        tree,
        ComponentRequest(
            name=options.name,
            project=options.project_name,
            style=options.style,
            skip_tests=not options.setup_vitest,
            generate_stories=options.generate_stories,
            flat=True,
            skip_format=True,
        ),
    )


async def add_library_lint(tree: WorkspaceTree, options: NormalizedLibraryOptions) -> None:
    await configure_eslint(tree, options.project_name, is_lib=True)


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def build_library_steps(
    options: NormalizedLibraryOptions,
    installer: DependencyInstaller | None = None,
) -> list[GeneratorStep]:
    """Return the ordered generator steps enabled by *options*."""
    steps = [
        GeneratorStep("js-init", js_init_generator),
        GeneratorStep("base-library", base_library_generator),
        GeneratorStep("qwik-library-files", add_qwik_library_files),
    ]
    if options.storybook_configuration:
        steps.append(
            GeneratorStep(
                "storybook-configuration", partial(add_library_storybook, installer=installer)
            )
        )
    if options.generate_component:
        steps.append(GeneratorStep("component", add_library_component))
    steps.append(GeneratorStep("vite", configure_vite))
    if options.linter == "eslint":
        steps.append(GeneratorStep("eslint", add_library_lint))
    steps.append(
        GeneratorStep("dependencies", partial(add_common_qwik_dependencies, installer=installer))
    )
    return steps


async def library_generator(
    tree: WorkspaceTree,
    schema: LibraryRequest | dict,
    *,
    installer: DependencyInstaller | None = None,
    settings: Settings | None = None,
) -> SerialTaskRunner:
    """Stage a new Qwik library in *tree*.

    Args:
        tree: Workspace tree the library is planned into.
        schema: Raw library request.
        installer: Receives the dependency sets once the returned runner is
            awaited.  Defaults to logging them.
        settings: Workspace defaults (libs directory, npm scope, versions).

    Returns:
        The combined deferred callback; await it after committing the tree.

    Raises:
        ValidationError: The request is invalid.  Nothing has been staged.
        CompositionFailure: A generator step failed.
    """
    options = normalize_options(tree, schema, settings)
    steps = build_library_steps(options, installer)
    logger.info(
        "generating library %s in %s (%s)",
        options.project_name,
        options.project_root,
        ", ".join(step.name for step in steps),
    )
    runner = await run_generators(tree, options, steps)

    if not options.skip_format:
        format_files(tree)
    return runner
