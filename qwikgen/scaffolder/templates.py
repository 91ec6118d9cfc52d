"""Jinja2 template expansion into a workspace tree.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``qwikgen/scaffolder/templates/`` directory and renders them with
generator-specific context data, and :func:`generate_files`, which expands a
whole template directory into a :class:`WorkspaceTree`.

Template conventions:

* ``{{ variable }}`` substitutes a context value; ``{% if flag %}`` gates a
  fragment.  Undefined variables are errors, never literal text.
* ``__variable__`` in a file or directory name is replaced by the context
  value, so one template directory fans out into differently named files.
* A trailing ``.j2`` or ``__tmpl__`` is stripped from the destination name.
* A file whose name renders to an empty string is not generated.
"""

from __future__ import annotations

import asyncio
import logging
import posixpath
import re
from fnmatch import fnmatch
from pathlib import Path
from typing import Any, Iterable

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError as JinjaTemplateError,
    TemplateNotFound,
    TemplateSyntaxError,
)

from qwikgen.devkit.tree import WorkspaceTree, normalize_path
from qwikgen.errors import TemplateError
from qwikgen.utils import names, sanitize_name


logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

_PATH_TOKEN = re.compile(r"__([A-Za-z][A-Za-z0-9_]*?)__")
_TEMPLATE_SUFFIXES = (".j2", "__tmpl__")


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for scaffolding.

    The renderer discovers template files under a configurable template
    directory.  Rendering is strict: a placeholder missing from the context
    or a malformed block raises :class:`~qwikgen.errors.TemplateError`.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        # Register custom filters
        self.env.filters["kebab_case"] = sanitize_name
        self.env.filters["pascal_case"] = lambda value: names(str(value))["class_name"]
        self.env.filters["camel_case"] = lambda value: names(str(value))["property_name"]
        self.env.filters["constant_case"] = lambda value: names(str(value))["constant_name"]

    # -- Single template rendering -----------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"library/src/index.ts.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        try:
            template = self.env.get_template(template_path)
            return template.render(**context)
        except TemplateNotFound as exc:
            raise TemplateError(template_path, "template not found") from exc
        except TemplateSyntaxError as exc:
            raise TemplateError(template_path, f"line {exc.lineno}: {exc.message}") from exc
        except JinjaTemplateError as exc:
            raise TemplateError(template_path, str(exc)) from exc

    def render_string(
        self,
        template_string: str,
        context: dict[str, Any],
        name: str = "<string>",
    ) -> str:
        """Render an inline template string with the provided context."""
        try:
            return self.env.from_string(template_string).render(**context)
        except TemplateSyntaxError as exc:
            raise TemplateError(name, f"line {exc.lineno}: {exc.message}") from exc
        except JinjaTemplateError as exc:
            raise TemplateError(name, str(exc)) from exc

    # -- Directory rendering (async) ---------------------------------------

    async def render_tree(
        self,
        template_prefix: str,
        context: dict[str, Any],
        *,
        skip_patterns: list[str] | None = None,
    ) -> list[tuple[str, str]]:
        """Render every file under *template_prefix*.

        Args:
            template_prefix: Subdirectory inside the template root to scan.
            context: Template context variables.
            skip_patterns: Optional glob patterns matched against each
                template's path relative to *template_prefix* (e.g.
                ``["*.spec.tsx.j2"]``); matching templates are not rendered.

        Returns:
            ``(relative template path, rendered content)`` pairs, sorted by
            path.
        """
        skip_patterns = skip_patterns or []
        prefix_path = self.template_dir / template_prefix
        if not prefix_path.is_dir():
            raise TemplateError(template_prefix, "template directory not found")

        rendered: list[tuple[str, str]] = []
        for template_file in sorted(p for p in prefix_path.rglob("*") if p.is_file()):
            rel_str = template_file.relative_to(prefix_path).as_posix()
            if any(fnmatch(rel_str, pat) for pat in skip_patterns):
                continue

            template_key = f"{template_prefix}/{rel_str}"
            content = await asyncio.to_thread(self.render, template_key, context)
            rendered.append((rel_str, content))

        return rendered

    # -- Utility -----------------------------------------------------------

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all template paths under *prefix*.

        Paths are relative to the template root directory.
        """
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob("*")
            if p.is_file()
        )


# ---------------------------------------------------------------------------
# Path substitution
# ---------------------------------------------------------------------------


def substitute_path(path: str, context: dict[str, Any]) -> str:
    """Compute a destination path from a template path.

    Examples::

        substitute_path("lib/__file_name__.tsx.j2", {"file_name": "my-button"})
            -> "lib/my-button.tsx"
    """
    for suffix in _TEMPLATE_SUFFIXES:
        if path.endswith(suffix):
            path = path[: -len(suffix)]
            break

    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in context:
            raise TemplateError(path, f"no value for path placeholder '__{key}__'")
        return str(context[key])

    return _PATH_TOKEN.sub(replace, path)


# ---------------------------------------------------------------------------
# Expansion into the tree
# ---------------------------------------------------------------------------


_default_renderer: TemplateRenderer | None = None


def get_renderer() -> TemplateRenderer:
    """Return the shared renderer for the bundled templates."""
    global _default_renderer
    if _default_renderer is None:
        _default_renderer = TemplateRenderer()
    return _default_renderer


async def generate_files(
    tree: WorkspaceTree,
    template_prefix: str,
    target_dir: str,
    context: dict[str, Any],
    *,
    skip_patterns: Iterable[str] | None = None,
    renderer: TemplateRenderer | None = None,
) -> list[str]:
    """Expand the templates under *template_prefix* into *target_dir*.

    Every template is rendered and every destination path validated before
    the first write, so a failing expansion leaves the tree untouched.

    Raises:
        TemplateError: A placeholder could not be resolved or a block is
            malformed.
        BoundaryViolation: A computed destination resolves outside
            *target_dir*.

    Returns:
        The workspace paths that were written, in write order.
    """
    renderer = renderer or get_renderer()
    boundary = normalize_path(target_dir)
    rendered = await renderer.render_tree(
        template_prefix, context, skip_patterns=list(skip_patterns or [])
    )

    planned: list[tuple[str, str]] = []
    for relative, content in rendered:
        substituted = substitute_path(relative, context)
        if not posixpath.basename(substituted):
            # An empty file name drops the file.
            logger.debug("skipping %s: destination name is empty", relative)
            continue
        destination = normalize_path(substituted, boundary)
        if destination == boundary:
            continue
        planned.append((destination, content))

    for destination, content in planned:
        tree.write(destination, content)

    logger.debug(
        "expanded %d template(s) from %s into %s", len(planned), template_prefix, boundary
    )
    return [destination for destination, _ in planned]
