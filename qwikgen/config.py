"""qwikgen configuration.

Centralised, typed settings for scaffolding runs.  All settings use Pydantic
v2 models so they are validated at construction time and can be serialised
to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class VersionConfig(BaseModel):
    """Package versions written into ``package.json`` by the generators."""

    qwik: str = Field(default="^1.2.13")
    qwik_city: str = Field(default="^1.2.13")
    vite: str = Field(default="^4.4.9")
    vite_tsconfig_paths: str = Field(default="^4.2.1")
    vitest: str = Field(default="^0.34.6")
    vitest_coverage: str = Field(default="^0.34.6")
    eslint_plugin_qwik: str = Field(default="^1.2.13")
    storybook: str = Field(default="^7.4.6")
    storybook_framework_qwik: str = Field(default="^0.2.4")


class Settings(BaseModel):
    """Global qwikgen settings.

    Instances are typically created once by the CLI entry point (see
    :func:`qwikgen.pipeline.main`) and then passed to the generators.
    """

    workspace_root: Path = Field(default=Path("."))
    libs_dir: str = Field(default="libs", description="Default libraries directory")
    apps_dir: str = Field(default="apps", description="Default applications directory")
    npm_scope: str = Field(
        default="proj",
        description="Scope used for import paths when package.json does not name one",
    )
    manifest_path: Path = Field(
        default=Path(".qwikgen/install-manifest.json"),
        description="Install manifest written by deferred callbacks, relative to the workspace",
    )
    versions: VersionConfig = Field(default_factory=VersionConfig)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def manifest_file(self) -> Path:
        """Absolute location of the install manifest."""
        if self.manifest_path.is_absolute():
            return self.manifest_path
        return self.workspace_root / self.manifest_path

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the settings to a JSON file and return its path."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "Settings":
        """Load previously saved settings from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            QWIKGEN_WORKSPACE_ROOT, QWIKGEN_LIBS_DIR, QWIKGEN_APPS_DIR,
            QWIKGEN_NPM_SCOPE, QWIKGEN_MANIFEST_PATH, QWIKGEN_QWIK_VERSION.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("QWIKGEN_WORKSPACE_ROOT"):
            kwargs["workspace_root"] = Path(os.environ["QWIKGEN_WORKSPACE_ROOT"])
        if os.environ.get("QWIKGEN_LIBS_DIR"):
            kwargs["libs_dir"] = os.environ["QWIKGEN_LIBS_DIR"]
        if os.environ.get("QWIKGEN_APPS_DIR"):
            kwargs["apps_dir"] = os.environ["QWIKGEN_APPS_DIR"]
        if os.environ.get("QWIKGEN_NPM_SCOPE"):
            kwargs["npm_scope"] = os.environ["QWIKGEN_NPM_SCOPE"]
        if os.environ.get("QWIKGEN_MANIFEST_PATH"):
            kwargs["manifest_path"] = Path(os.environ["QWIKGEN_MANIFEST_PATH"])

        version_kwargs: dict[str, Any] = {}
        if os.environ.get("QWIKGEN_QWIK_VERSION"):
            version_kwargs["qwik"] = os.environ["QWIKGEN_QWIK_VERSION"]
            version_kwargs["qwik_city"] = os.environ["QWIKGEN_QWIK_VERSION"]

        return cls(versions=VersionConfig(**version_kwargs), **kwargs)
