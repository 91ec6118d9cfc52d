"""qwikgen scaffolding run orchestrator.

A run goes through four stages:

1. PLAN     -- normalize the request and stage every generator unit in an
               in-memory :class:`~qwikgen.devkit.WorkspaceTree`.
2. REVIEW   -- print the net change list.
3. COMMIT   -- write the changes below the workspace root (skipped on
               ``--dry-run``).
4. CALLBACK -- run the deferred callbacks (dependency manifest updates).

A run that fails while planning never reaches the commit stage, so the
workspace on disk is left untouched.

Usage::

    python -m qwikgen.pipeline library my-lib --directory shared
    python -m qwikgen.pipeline component my-button --project shared-my-lib
    python -m qwikgen.pipeline storybook shared-my-lib --qwik-city-support false
    python -m qwikgen.pipeline --dry-run library my-lib
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from rich.panel import Panel

from qwikgen.config import Settings
from qwikgen.devkit.commit import flush_changes
from qwikgen.devkit.tasks import GeneratorCallback
from qwikgen.devkit.tree import FileChange, WorkspaceTree
from qwikgen.errors import CompositionFailure, ScaffoldError
from qwikgen.scaffolder.component import component_generator
from qwikgen.scaffolder.dependencies import DependencyInstaller, ManifestInstaller
from qwikgen.scaffolder.library import library_generator
from qwikgen.scaffolder.storybook import storybook_configuration_generator
from qwikgen.utils import (
    configure_logging,
    console,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)

logger = logging.getLogger(__name__)

Generator = Callable[..., Awaitable[Optional[GeneratorCallback]]]


async def _component(
    tree: WorkspaceTree,
    request: dict[str, Any],
    *,
    installer: DependencyInstaller | None = None,
    settings: Settings | None = None,
) -> None:
    await component_generator(tree, request)


GENERATORS: dict[str, Generator] = {
    "library": library_generator,
    "component": _component,
    "storybook": storybook_configuration_generator,
}


# ---------------------------------------------------------------------------
# Scaffolding run
# ---------------------------------------------------------------------------


class ScaffoldRun:
    """Drives one generator from request to committed workspace.

    Attributes:
        settings: Workspace settings (root directory, defaults, versions).
        dry_run: When set, the change list is printed but nothing is written
            and no deferred callback runs.
        installer: Receives dependency sets; defaults to a
            :class:`ManifestInstaller` writing ``settings.manifest_file``.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        dry_run: bool = False,
        installer: DependencyInstaller | None = None,
    ) -> None:
        self.settings = settings
        self.dry_run = dry_run
        self.installer = installer or ManifestInstaller(settings.manifest_file)

    async def run(self, generator: str, request: dict[str, Any]) -> list[FileChange]:
        """Plan, review and commit one generator run.

        Args:
            generator: Key of :data:`GENERATORS` (``library``, ``component``
                or ``storybook``).
            request: Raw request fields for that generator.

        Returns:
            The net changes of the run, whether or not they were written.

        Raises:
            ScaffoldError: Planning failed; nothing was written.
            KeyError: *generator* is not a known generator.
        """
        unit = GENERATORS[generator]
        start = time.monotonic()

        tree = WorkspaceTree(self.settings.workspace_root)
        callback = await unit(tree, request, installer=self.installer, settings=self.settings)
        changes = tree.list_changes()
        print_changes(changes, title=f"{generator} ({len(changes)} change(s))")

        if self.dry_run:
            print_warning("Dry run: no files were written.")
            return changes

        await flush_changes(tree)
        if callback is not None:
            await callback()

        print_success(
            f"{generator} generated {len(changes)} change(s) in {time.monotonic() - start:.2f}s"
        )
        return changes


def print_changes(changes: list[FileChange], title: str = "Changes") -> None:
    print_summary_table({change.path: change.type.value for change in changes}, title=title)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _add_library_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser("library", help="Generate a Qwik library")
    parser.add_argument("name", help="Library name")
    parser.add_argument("--directory", help="Directory the library is placed in")
    parser.add_argument("--tags", help="Comma-separated project tags")
    parser.add_argument("--style", choices=["css", "scss", "styl", "less", "none"])
    parser.add_argument("--linter", choices=["eslint", "none"])
    parser.add_argument("--strict", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--unit-test-runner", choices=["vitest", "none"])
    parser.add_argument("--buildable", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--import-path", help="TypeScript import path of the library")
    parser.add_argument(
        "--generate-component", action=argparse.BooleanOptionalAction, default=None
    )
    parser.add_argument(
        "--storybook-configuration", action=argparse.BooleanOptionalAction, default=None
    )
    parser.add_argument("--generate-stories", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--qwik-city-support", choices=["true", "false", "auto"])
    parser.add_argument(
        "--project-name-and-root-format", choices=["derived", "as-provided"]
    )
    parser.add_argument("--skip-format", action="store_true", default=None)


def _add_component_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser("component", help="Generate a component in a project")
    parser.add_argument("name", help="Component name")
    parser.add_argument("--project", required=True, help="Project the component belongs to")
    parser.add_argument("--directory", help="Subdirectory below src/lib")
    parser.add_argument("--style", choices=["css", "scss", "styl", "less", "none"])
    parser.add_argument("--skip-tests", action="store_true", default=None)
    parser.add_argument("--generate-stories", action="store_true", default=None)
    parser.add_argument("--flat", action="store_true", default=None)
    parser.add_argument("--export", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--skip-format", action="store_true", default=None)


def _add_storybook_parser(subparsers: Any) -> None:
    parser = subparsers.add_parser("storybook", help="Configure Storybook for a project")
    parser.add_argument("name", help="Project to configure")
    parser.add_argument("--qwik-city-support", choices=["true", "false", "auto"])
    parser.add_argument("--skip-format", action="store_true", default=None)


_GLOBAL_ARGS = {"generator", "workspace", "dry_run", "verbose"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qwikgen",
        description="qwikgen -- scaffold Qwik libraries, components and Storybook setups",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  qwikgen library my-lib --directory shared\n"
            "  qwikgen --dry-run library my-lib --storybook-configuration\n"
            "  qwikgen component my-button --project shared-my-lib\n"
        ),
    )
    parser.add_argument(
        "--workspace", "-w",
        default=None,
        help="Workspace root (default: $QWIKGEN_WORKSPACE_ROOT or the current directory)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the planned changes without writing them",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="generator", required=True)
    _add_library_parser(subparsers)
    _add_component_parser(subparsers)
    _add_storybook_parser(subparsers)
    return parser


def request_from_args(args: argparse.Namespace) -> dict[str, Any]:
    """Collect the generator request from parsed arguments; unset flags are omitted."""
    return {
        key: value
        for key, value in vars(args).items()
        if key not in _GLOBAL_ARGS and value is not None
    }


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``python -m qwikgen.pipeline``."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    settings = Settings.from_env()
    if args.workspace:
        settings = settings.model_copy(update={"workspace_root": Path(args.workspace)})
    if not settings.workspace_root.is_dir():
        print_error(f"Error: workspace root not found: {settings.workspace_root}")
        sys.exit(1)

    console.print(
        Panel(
            f"[bold bright_cyan]qwikgen {args.generator}[/bold bright_cyan]\n"
            f"Workspace : {settings.workspace_root.resolve()}\n"
            f"Dry run   : {'yes' if args.dry_run else 'no'}",
            border_style="bright_cyan",
        )
    )

    run = ScaffoldRun(settings, dry_run=args.dry_run)
    try:
        asyncio.run(run.run(args.generator, request_from_args(args)))
    except CompositionFailure as exc:
        print_error(f"Error: {exc}")
        logger.debug("step failure", exc_info=exc.original)
        sys.exit(1)
    except ScaffoldError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
