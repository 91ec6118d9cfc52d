"""Dependency declaration for generated workspaces.

Generators stage the new entries in the root ``package.json`` right away and
hand back a deferred callback.  Only that callback talks to the
:class:`DependencyInstaller`, once the plan has been committed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Protocol

from qwikgen.devkit.json import read_json, write_json
from qwikgen.devkit.tasks import GeneratorCallback
from qwikgen.devkit.tree import WorkspaceTree
from qwikgen.utils import load_json, save_json

from .normalize import NormalizedLibraryOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DependencySet:
    """One request to install a group of packages."""

    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, dict[str, str]]:
        return {
            "dependencies": dict(self.dependencies),
            "devDependencies": dict(self.dev_dependencies),
        }


class DependencyInstaller(Protocol):
    """Records that the workspace now requires a set of packages."""

    async def install(self, dependencies: DependencySet) -> None: ...


class ManifestInstaller:
    """Appends every dependency set to a JSON install manifest on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read_installs(self) -> list[dict]:
        if not self.path.exists():
            return []
        return load_json(self.path).get("installs", [])

    async def install(self, dependencies: DependencySet) -> None:
        entries = await asyncio.to_thread(self._read_installs)
        entries.append(
            {
                "recorded_at": datetime.now(timezone.utc).isoformat(),
                **dependencies.as_dict(),
            }
        )
        await save_json({"installs": entries}, self.path)
        logger.info("recorded %d package(s) in %s", _count(dependencies), self.path)


class LoggingInstaller:
    """Only reports the dependency sets; used when no manifest is configured."""

    async def install(self, dependencies: DependencySet) -> None:
        for section, packages in dependencies.as_dict().items():
            for name, version in packages.items():
                logger.info("%s: %s@%s", section, name, version)


def _count(dependencies: DependencySet) -> int:
    return len(dependencies.dependencies) + len(dependencies.dev_dependencies)


# ---------------------------------------------------------------------------
# package.json updates
# ---------------------------------------------------------------------------


def _merge_section(existing: Mapping[str, str], requested: Mapping[str, str]) -> dict[str, str]:
    merged = dict(existing)
    for name, version in requested.items():
        merged.setdefault(name, version)
    return dict(sorted(merged.items()))


def add_dependencies_to_package_json(
    tree: WorkspaceTree,
    dependencies: Mapping[str, str],
    dev_dependencies: Mapping[str, str],
    installer: DependencyInstaller | None = None,
) -> GeneratorCallback:
    """Stage *dependencies* in the root ``package.json`` and return the install callback.

    Versions already declared by the workspace are left alone.  A package
    requested as a dependency is not duplicated under ``devDependencies``.
    """
    package_json = read_json(tree, "package.json") if tree.is_file("package.json") else {}
    declared = package_json.get("dependencies") or {}
    dev_requested = {k: v for k, v in dev_dependencies.items() if k not in declared}

    package_json["dependencies"] = _merge_section(declared, dependencies)
    package_json["devDependencies"] = _merge_section(
        package_json.get("devDependencies") or {}, dev_requested
    )
    write_json(tree, "package.json", package_json)

    requested = DependencySet(
        dependencies=dict(sorted(dependencies.items())),
        dev_dependencies=dict(sorted(dev_requested.items())),
    )
    target = installer or LoggingInstaller()

    async def install_packages() -> None:
        await target.install(requested)

    return install_packages


def common_qwik_dependencies(options: NormalizedLibraryOptions) -> dict[str, str]:
    """Return the dev dependencies every Qwik library in the workspace relies on."""
    versions = options.versions
    packages = {
        "@builder.io/qwik": options.qwik_version,
        "@builder.io/qwik-city": versions.qwik_city,
        "vite": versions.vite,
        "vite-tsconfig-paths": versions.vite_tsconfig_paths,
    }
    if options.setup_vitest:
        packages["vitest"] = versions.vitest
        packages["@vitest/coverage-v8"] = versions.vitest_coverage
    if options.linter == "eslint":
        packages["eslint-plugin-qwik"] = versions.eslint_plugin_qwik
    return packages


async def add_common_qwik_dependencies(
    tree: WorkspaceTree,
    options: NormalizedLibraryOptions,
    installer: DependencyInstaller | None = None,
) -> GeneratorCallback:
    return add_dependencies_to_package_json(
        tree, {}, common_qwik_dependencies(options), installer
    )
