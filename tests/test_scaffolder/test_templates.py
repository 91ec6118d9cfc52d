"""Tests for the template expander (qwikgen.scaffolder.templates).

Covers:
- Strict rendering: undefined placeholders and malformed blocks fail
- Destination path substitution
- generate_files validating every destination before writing
- The bundled template directories
"""

from __future__ import annotations

from pathlib import Path

import pytest

from qwikgen.devkit.tree import WorkspaceTree
from qwikgen.errors import BoundaryViolation, TemplateError
from qwikgen.scaffolder.templates import (
    TemplateRenderer,
    generate_files,
    get_renderer,
    substitute_path,
)

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def template_root(tmp_path: Path) -> Path:
    """A throwaway template directory with a few small template sets."""
    root = tmp_path / "templates"

    files = {
        "simple/README.md.j2": "# {{ name }}\n",
        "simple/src/__file_name__.ts.j2": "export const {{ property_name }} = 1;\n",
        "simple/src/__file_name__.spec.ts.j2": "test('{{ name }}');\n",
        "gated/index.ts.j2": "{% if with_extra %}extra\n{% endif %}base\n",
        "escape/a-first.txt.j2": "first\n",
        "escape/__target__.txt.j2": "escaped\n",
        "undefined/file.txt.j2": "{{ missing_value }}\n",
        "malformed/file.txt.j2": "{% if name %}never closed\n",
        "raw/script.ts__tmpl__": "const x = `${value}`;\n",
        "optional/keep.ts.j2": "keep\n",
        "optional/__opt__.j2": "only when named\n",
        "optional/nested/__opt__.j2": "only when named\n",
    }
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def renderer(template_root: Path) -> TemplateRenderer:
    return TemplateRenderer(template_root)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRender:
    def test_substitutes_placeholders(self, renderer: TemplateRenderer):
        assert renderer.render("simple/README.md.j2", {"name": "my-lib"}) == "# my-lib\n"

    def test_conditional_fragment(self, renderer: TemplateRenderer):
        assert renderer.render("gated/index.ts.j2", {"with_extra": True}) == "extra\nbase\n"
        assert renderer.render("gated/index.ts.j2", {"with_extra": False}) == "base\n"

    def test_undefined_placeholder_is_an_error(self, renderer: TemplateRenderer):
        with pytest.raises(TemplateError) as exc_info:
            renderer.render("undefined/file.txt.j2", {})
        assert exc_info.value.template == "undefined/file.txt.j2"

    def test_malformed_block_is_an_error(self, renderer: TemplateRenderer):
        with pytest.raises(TemplateError):
            renderer.render("malformed/file.txt.j2", {"name": "x"})

    def test_missing_template(self, renderer: TemplateRenderer):
        with pytest.raises(TemplateError):
            renderer.render("nope.j2", {})

    def test_template_literal_dollar_braces_untouched(self, renderer: TemplateRenderer):
        assert renderer.render("raw/script.ts__tmpl__", {}) == "const x = `${value}`;\n"

    def test_case_filters(self, renderer: TemplateRenderer):
        rendered = renderer.render_string(
            "{{ n | kebab_case }} {{ n | pascal_case }} {{ n | camel_case }} {{ n | constant_case }}",
            {"n": "myButton"},
        )
        assert rendered == "my-button MyButton myButton MY_BUTTON"

    def test_list_templates(self, renderer: TemplateRenderer):
        assert renderer.list_templates("gated") == ["gated/index.ts.j2"]
        assert renderer.list_templates("nope") == []


class TestSubstitutePath:
    def test_replaces_tokens_and_strips_suffix(self):
        assert (
            substitute_path("lib/__file_name__.tsx.j2", {"file_name": "my-button"})
            == "lib/my-button.tsx"
        )

    def test_tmpl_suffix(self):
        assert substitute_path("__name__.ts__tmpl__", {"name": "x"}) == "x.ts"

    def test_several_tokens(self):
        assert (
            substitute_path("__file_name__.__style__.j2", {"file_name": "b", "style": "scss"})
            == "b.scss"
        )

    def test_unknown_token(self):
        with pytest.raises(TemplateError):
            substitute_path("__nope__.ts.j2", {})


# ---------------------------------------------------------------------------
# generate_files
# ---------------------------------------------------------------------------


class TestGenerateFiles:
    @pytest.mark.asyncio
    async def test_expands_into_target_dir(self, renderer: TemplateRenderer):
        tree = WorkspaceTree()
        written = await generate_files(
            tree,
            "simple",
            "libs/my-lib",
            {"name": "my-lib", "file_name": "my-lib", "property_name": "myLib"},
            renderer=renderer,
        )
        assert written == [
            "libs/my-lib/README.md",
            "libs/my-lib/src/my-lib.spec.ts",
            "libs/my-lib/src/my-lib.ts",
        ]
        assert tree.read_text("libs/my-lib/src/my-lib.ts") == "export const myLib = 1;\n"

    @pytest.mark.asyncio
    async def test_skip_patterns(self, renderer: TemplateRenderer):
        tree = WorkspaceTree()
        written = await generate_files(
            tree,
            "simple",
            "out",
            {"name": "a", "file_name": "a", "property_name": "a"},
            skip_patterns=["*.spec.ts.j2"],
            renderer=renderer,
        )
        assert "out/src/a.spec.ts" not in written
        assert not tree.exists("out/src/a.spec.ts")

    @pytest.mark.asyncio
    async def test_empty_file_name_skips_the_file(self, renderer: TemplateRenderer):
        tree = WorkspaceTree()
        written = await generate_files(
            tree, "optional", "libs/a", {"opt": ""}, renderer=renderer
        )
        assert written == ["libs/a/keep.ts"]
        assert not tree.is_file("libs/a")
        assert tree.children("libs/a") == ["keep.ts"]

    @pytest.mark.asyncio
    async def test_named_optional_file_generated(self, renderer: TemplateRenderer):
        tree = WorkspaceTree()
        written = await generate_files(
            tree, "optional", "libs/a", {"opt": "extra.ts"}, renderer=renderer
        )
        assert sorted(written) == [
            "libs/a/extra.ts",
            "libs/a/keep.ts",
            "libs/a/nested/extra.ts",
        ]

    @pytest.mark.asyncio
    async def test_escaping_destination_rejected_before_any_write(
        self, renderer: TemplateRenderer
    ):
        tree = WorkspaceTree()
        with pytest.raises(BoundaryViolation):
            await generate_files(
                tree, "escape", "libs/target", {"target": "../evil"}, renderer=renderer
            )
        assert tree.history == []
        assert not tree.exists("libs")

    @pytest.mark.asyncio
    async def test_render_failure_writes_nothing(self, renderer: TemplateRenderer):
        tree = WorkspaceTree()
        with pytest.raises(TemplateError):
            await generate_files(tree, "undefined", "out", {}, renderer=renderer)
        assert tree.history == []

    @pytest.mark.asyncio
    async def test_missing_template_directory(self, renderer: TemplateRenderer):
        with pytest.raises(TemplateError):
            await generate_files(WorkspaceTree(), "absent", "out", {}, renderer=renderer)


# ---------------------------------------------------------------------------
# Bundled templates
# ---------------------------------------------------------------------------


class TestBundledTemplates:
    def test_template_sets_present(self):
        templates = get_renderer().list_templates()
        for prefix in ("base-library/", "library/", "library-root/", "component/", "storybook/"):
            assert any(t.startswith(prefix) for t in templates), prefix

    def test_get_renderer_is_shared(self):
        assert get_renderer() is get_renderer()
