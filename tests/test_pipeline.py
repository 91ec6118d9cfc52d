"""Unit tests for the scaffolding run orchestrator (qwikgen.pipeline).

Tests cover:
- ScaffoldRun committing a planned tree and running deferred callbacks
- Dry runs writing nothing
- Failed planning leaving the workspace untouched
- Argument parsing into generator requests
- main() exit codes
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from qwikgen.config import Settings
from qwikgen.devkit.tree import ChangeType
from qwikgen.errors import ValidationError
from qwikgen.pipeline import GENERATORS, ScaffoldRun, build_parser, main, request_from_args

pytestmark = pytest.mark.unit


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        p.relative_to(root).as_posix(): p.read_bytes() for p in root.rglob("*") if p.is_file()
    }


# ---------------------------------------------------------------------------
# ScaffoldRun
# ---------------------------------------------------------------------------


class TestScaffoldRun:
    @pytest.mark.asyncio
    async def test_library_committed(self, settings: Settings, installer):
        changes = await ScaffoldRun(settings, installer=installer).run(
            "library", {"name": "my-lib", "directory": "shared"}
        )
        root = settings.workspace_root

        assert (root / "libs/shared/my-lib/project.json").is_file()
        assert (root / "libs/shared/my-lib/src/lib/my-lib.tsx").is_file()
        assert any(c.path == "package.json" and c.type is ChangeType.UPDATE for c in changes)
        assert len(installer.installs) == 1

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self, settings: Settings, installer):
        before = _snapshot(settings.workspace_root)
        changes = await ScaffoldRun(settings, dry_run=True, installer=installer).run(
            "library", {"name": "my-lib"}
        )
        assert changes
        assert _snapshot(settings.workspace_root) == before
        assert installer.installs == []

    @pytest.mark.asyncio
    async def test_failed_planning_writes_nothing(self, settings: Settings, installer):
        before = _snapshot(settings.workspace_root)
        with pytest.raises(ValidationError):
            await ScaffoldRun(settings, installer=installer).run(
                "library", {"name": "my-lib", "generateStories": True}
            )
        assert _snapshot(settings.workspace_root) == before
        assert installer.installs == []

    @pytest.mark.asyncio
    async def test_default_installer_writes_manifest(self, settings: Settings):
        await ScaffoldRun(settings).run("library", {"name": "my-lib"})
        manifest = json.loads(settings.manifest_file.read_text(encoding="utf-8"))
        assert len(manifest["installs"]) == 1

    @pytest.mark.asyncio
    async def test_component_generator_has_no_callback(self, settings: Settings, installer):
        run = ScaffoldRun(settings, installer=installer)
        await run.run("library", {"name": "ui", "generateComponent": False})
        changes = await run.run("component", {"name": "card", "project": "ui"})
        assert {c.path for c in changes} >= {"libs/ui/src/lib/card/card.tsx", "libs/ui/src/index.ts"}
        assert len(installer.installs) == 1

    def test_generators_registered(self):
        assert set(GENERATORS) == {"library", "component", "storybook"}


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestArgumentParsing:
    def test_library_request(self):
        args = build_parser().parse_args(
            ["library", "my-lib", "--directory", "shared", "--no-generate-component", "--buildable"]
        )
        assert request_from_args(args) == {
            "name": "my-lib",
            "directory": "shared",
            "generate_component": False,
            "buildable": True,
        }

    def test_unset_flags_omitted(self):
        args = build_parser().parse_args(["--dry-run", "storybook", "ui"])
        assert args.dry_run is True
        assert request_from_args(args) == {"name": "ui"}

    def test_component_requires_project(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["component", "card"])


class TestMain:
    def test_dry_run_succeeds(self, workspace_dir: Path, monkeypatch):
        monkeypatch.delenv("QWIKGEN_WORKSPACE_ROOT", raising=False)
        before = _snapshot(workspace_dir)
        main(["--workspace", str(workspace_dir), "--dry-run", "library", "my-lib"])
        assert _snapshot(workspace_dir) == before

    def test_invalid_request_exits_1(self, workspace_dir: Path):
        with pytest.raises(SystemExit) as exc_info:
            main(["--workspace", str(workspace_dir), "library", "1-bad"])
        assert exc_info.value.code == 1

    def test_missing_workspace_exits_1(self, tmp_path: Path):
        with pytest.raises(SystemExit) as exc_info:
            main(["--workspace", str(tmp_path / "absent"), "library", "my-lib"])
        assert exc_info.value.code == 1
