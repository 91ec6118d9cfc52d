"""Error taxonomy for scaffolding runs.

Every failure raised by the engine derives from :class:`ScaffoldError` so the
CLI can report it uniformly.  None of these errors are retried: a failed run
is simply discarded together with its uncommitted workspace tree.
"""

from __future__ import annotations

from typing import Sequence


class ScaffoldError(Exception):
    """Base class for every error raised by qwikgen."""


class ValidationError(ScaffoldError):
    """Raised when a request is malformed or its options are incompatible.

    Attributes:
        option: Name of the request field that caused the failure.
    """

    def __init__(self, option: str, message: str) -> None:
        self.option = option
        super().__init__(f"Invalid option '{option}': {message}")


class BoundaryViolation(ScaffoldError):
    """Raised when a computed path escapes the subtree it must stay inside."""

    def __init__(self, path: str, boundary: str) -> None:
        self.path = path
        self.boundary = boundary
        super().__init__(f"Path '{path}' resolves outside of '{boundary or '.'}'")


class PathConflictError(ScaffoldError):
    """Raised when a write would make one path both a file and a directory."""

    def __init__(self, path: str, conflict: str) -> None:
        self.path = path
        self.conflict = conflict
        if conflict == path:
            detail = "it is already a directory"
        else:
            detail = f"'{conflict}' is a file"
        super().__init__(f"Cannot write '{path}': {detail}")


class TemplateError(ScaffoldError):
    """Raised when a template cannot be expanded completely."""

    def __init__(self, template: str, message: str) -> None:
        self.template = template
        super().__init__(f"Template '{template}': {message}")


class ProjectNotFoundError(ScaffoldError):
    """Raised when a project lookup by name fails."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Cannot find configuration for project '{name}'")


class CompositionFailure(ScaffoldError):
    """Raised when a scheduled step fails.

    ``positions`` holds the 1-based index of the failing step at every level
    of nesting (outermost first); ``index`` is the outermost position and
    ``original`` the exception raised by the step itself.
    """

    def __init__(
        self,
        positions: Sequence[int],
        original: BaseException,
        step: str | None = None,
    ) -> None:
        self.positions = tuple(positions)
        self.original = original
        self.step = step
        label = f" ({step})" if step else ""
        where = ".".join(str(p) for p in self.positions)
        super().__init__(f"Step {where}{label} failed: {original}")

    @property
    def index(self) -> int:
        return self.positions[0]
