"""Option normalization for the library generator.

Turns a loosely specified :class:`LibraryRequest` into a frozen
:class:`NormalizedLibraryOptions` record.  Every value a downstream generator
unit reads is resolved here, once: names and paths are derived with pure
string transforms, feature flags are defaulted, and conflicting flags are
either downgraded or rejected.  The workspace tree is only read.
"""

from __future__ import annotations

import logging
import posixpath
import re
from typing import Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from qwikgen.config import Settings, VersionConfig
from qwikgen.devkit.json import read_json
from qwikgen.devkit.projects import get_projects
from qwikgen.devkit.tree import WorkspaceTree, join_path_fragments
from qwikgen.errors import ValidationError
from qwikgen.utils import sanitize_name

from .js_init import get_ts_config_paths

logger = logging.getLogger(__name__)

Style = Literal["css", "scss", "styl", "less", "none"]
Linter = Literal["eslint", "none"]
QwikCitySupport = Literal["true", "false", "auto"]

VALID_NAME = re.compile(r"^[a-zA-Z][a-zA-Z0-9_\-]*$")
_VALID_DIRECTORY = re.compile(r"^[a-zA-Z0-9_\-./]+$")
_VALID_IMPORT_PATH = re.compile(r"^(@[a-z0-9\-~][a-z0-9\-._~]*/)?[a-z0-9\-~][a-z0-9\-._~/]*$")


# ---------------------------------------------------------------------------
# Request and normalized models
# ---------------------------------------------------------------------------


class LibraryRequest(BaseModel):
    """Raw library request as supplied by a caller.

    Field names accept both ``snake_case`` and the ``camelCase`` spelling used
    by generator schema files (``generateComponent``, ``unitTestRunner``...).
    Flags left as ``None`` are resolved by :func:`normalize_options`.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str
    directory: str | None = None
    tags: str | None = None
    style: Style = "css"
    linter: Linter = "eslint"
    strict: bool = True
    unit_test_runner: Literal["vitest", "none"] = Field(default="vitest", alias="unitTestRunner")
    buildable: bool = False
    import_path: str | None = Field(default=None, alias="importPath")
    generate_component: bool | None = Field(default=None, alias="generateComponent")
    storybook_configuration: bool | None = Field(default=None, alias="storybookConfiguration")
    generate_stories: bool | None = Field(default=None, alias="generateStories")
    qwik_city_support: QwikCitySupport = Field(default="auto", alias="qwikCitySupport")
    project_name_and_root_format: Literal["derived", "as-provided"] = Field(
        default="derived", alias="projectNameAndRootFormat"
    )
    skip_format: bool = Field(default=False, alias="skipFormat")


class NormalizedLibraryOptions(BaseModel):
    """Fully resolved, immutable library options."""

    model_config = ConfigDict(frozen=True)

    name: str
    project_name: str
    project_directory: str
    project_root: str
    source_root: str
    import_path: str
    parsed_tags: tuple[str, ...]
    style: Style
    linter: Linter
    strict: bool
    buildable: bool
    setup_vitest: bool
    generate_component: bool
    storybook_configuration: bool
    generate_stories: bool
    qwik_city_support: QwikCitySupport
    skip_format: bool
    qwik_version: str
    versions: VersionConfig


# ---------------------------------------------------------------------------
# Workspace lookups (read only)
# ---------------------------------------------------------------------------


def _read_root_package_json(tree: WorkspaceTree) -> dict:
    if not tree.is_file("package.json"):
        return {}
    try:
        data = read_json(tree, "package.json")
    except ValueError:
        logger.warning("root package.json is not valid JSON; ignoring it")
        return {}
    return data if isinstance(data, dict) else {}


def get_npm_scope(tree: WorkspaceTree, settings: Settings) -> str:
    """Return the npm scope from the root ``package.json`` name, if scoped."""
    name = _read_root_package_json(tree).get("name", "")
    if isinstance(name, str) and name.startswith("@") and "/" in name:
        return name[1:].split("/", 1)[0]
    return settings.npm_scope


def get_libs_dir(tree: WorkspaceTree, settings: Settings) -> str:
    """Return ``workspaceLayout.libsDir`` from ``nx.json`` or the configured default."""
    if tree.is_file("nx.json"):
        try:
            layout = read_json(tree, "nx.json").get("workspaceLayout") or {}
        except ValueError:
            layout = {}
        if layout.get("libsDir"):
            return str(layout["libsDir"]).strip("/")
    return settings.libs_dir


def get_installed_qwik_version(tree: WorkspaceTree) -> str | None:
    """Return the ``@builder.io/qwik`` version already declared by the workspace."""
    package_json = _read_root_package_json(tree)
    for section in ("dependencies", "devDependencies"):
        version = (package_json.get(section) or {}).get("@builder.io/qwik")
        if version:
            return str(version)
    return None


# ---------------------------------------------------------------------------
# Flag resolution
# ---------------------------------------------------------------------------


def resolve_dependent_flag(
    option: str,
    requested: bool | None,
    parents: dict[str, bool],
    default: bool,
) -> bool:
    """Resolve a flag that only makes sense when all of its *parents* are on.

    An unset flag takes *default* and silently drops to ``False`` when a
    parent is off.  An explicit ``True`` with a parent off is rejected.
    """
    disabled = [name for name, enabled in parents.items() if not enabled]
    if requested is None:
        return default and not disabled
    if requested and disabled:
        raise ValidationError(
            option, f"requires {', '.join(disabled)} to be enabled"
        )
    return requested


# ---------------------------------------------------------------------------
# normalize_options
# ---------------------------------------------------------------------------


RequestT = TypeVar("RequestT", bound=BaseModel)


def parse_request(model: type[RequestT], raw: RequestT | dict) -> RequestT:
    """Validate a raw request, reporting the first offending field."""
    if isinstance(raw, model):
        return raw
    try:
        return model.model_validate(raw)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        option = ".".join(str(part) for part in error["loc"]) or "request"
        raise ValidationError(option, error["msg"]) from exc


def _validate_directory(directory: str) -> str:
    if directory.startswith("/") or not _VALID_DIRECTORY.match(directory):
        raise ValidationError("directory", f"'{directory}' is not a valid relative path")
    normalized = posixpath.normpath(directory)
    if normalized == ".." or normalized.startswith("../"):
        raise ValidationError("directory", f"'{directory}' escapes the workspace")
    return "" if normalized == "." else normalized


def normalize_options(
    tree: WorkspaceTree,
    raw: LibraryRequest | dict,
    settings: Settings | None = None,
) -> NormalizedLibraryOptions:
    """Resolve *raw* into :class:`NormalizedLibraryOptions`.

    Raises:
        ValidationError: If the name or directory is invalid, the import
            path is malformed, the project already exists, or dependent
            flags contradict an explicit request.
    """
    settings = settings or Settings()
    request = parse_request(LibraryRequest, raw)

    name = request.name.strip()
    if not name:
        raise ValidationError("name", "must not be empty")
    if not VALID_NAME.match(name):
        raise ValidationError(
            "name",
            f"'{name}' must start with a letter and contain only letters, digits, '-' or '_'",
        )

    directory = _validate_directory(request.directory.strip()) if request.directory else ""

    if request.project_name_and_root_format == "as-provided":
        project_name = name
        project_root = directory or name
        project_directory = project_root
        import_suffix = sanitize_name(name)
    else:
        file_name = sanitize_name(name)
        dir_name = "/".join(sanitize_name(part) for part in directory.split("/") if part)
        project_directory = f"{dir_name}/{file_name}" if dir_name else file_name
        project_name = project_directory.replace("/", "-")
        project_root = join_path_fragments(get_libs_dir(tree, settings), project_directory)
        import_suffix = project_directory

    if project_name in get_projects(tree):
        raise ValidationError("name", f"project '{project_name}' already exists")
    if tree.exists(join_path_fragments(project_root, "project.json")):
        raise ValidationError("directory", f"'{project_root}' already contains a project")

    if request.import_path:
        import_path = request.import_path
        if not _VALID_IMPORT_PATH.match(import_path):
            raise ValidationError(
                "import_path", f"'{import_path}' is not a valid import specifier"
            )
    else:
        import_path = f"@{get_npm_scope(tree, settings)}/{import_suffix}"
    if import_path in get_ts_config_paths(tree):
        raise ValidationError("import_path", f"'{import_path}' is already in use")

    parsed_tags = tuple(t.strip() for t in (request.tags or "").split(",") if t.strip())

    generate_component = (
        True if request.generate_component is None else request.generate_component
    )
    storybook_configuration = bool(request.storybook_configuration)
    generate_stories = resolve_dependent_flag(
        "generate_stories",
        request.generate_stories,
        {
            "storybook_configuration": storybook_configuration,
            "generate_component": generate_component,
        },
        default=True,
    )

    qwik_version = get_installed_qwik_version(tree) or settings.versions.qwik

    options = NormalizedLibraryOptions(
        name=name,
        project_name=project_name,
        project_directory=project_directory,
        project_root=project_root,
        source_root=f"{project_root}/src",
        import_path=import_path,
        parsed_tags=parsed_tags,
        style=request.style,
        linter=request.linter,
        strict=request.strict,
        buildable=request.buildable,
        setup_vitest=request.unit_test_runner == "vitest",
        generate_component=generate_component,
        storybook_configuration=storybook_configuration,
        generate_stories=generate_stories,
        qwik_city_support=request.qwik_city_support,
        skip_format=request.skip_format,
        qwik_version=qwik_version,
        versions=settings.versions,
    )
    logger.debug("normalized library options: %s", options.model_dump(exclude={"versions"}))
    return options
