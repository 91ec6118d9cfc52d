"""Generator units for Qwik workspaces.

Each generator stages its output in a :class:`~qwikgen.devkit.WorkspaceTree`
and returns a deferred callback (or ``None``) to be awaited once the tree has
been committed.
"""

from qwikgen.scaffolder.component import ComponentRequest, component_generator
from qwikgen.scaffolder.dependencies import (
    DependencyInstaller,
    DependencySet,
    LoggingInstaller,
    ManifestInstaller,
)
from qwikgen.scaffolder.library import library_generator
from qwikgen.scaffolder.normalize import (
    LibraryRequest,
    NormalizedLibraryOptions,
    normalize_options,
)
from qwikgen.scaffolder.storybook import (
    StorybookConfigurationRequest,
    storybook_configuration_generator,
)
from qwikgen.scaffolder.templates import TemplateRenderer, generate_files

__all__ = [
    "ComponentRequest",
    "DependencyInstaller",
    "DependencySet",
    "LibraryRequest",
    "LoggingInstaller",
    "ManifestInstaller",
    "NormalizedLibraryOptions",
    "StorybookConfigurationRequest",
    "TemplateRenderer",
    "component_generator",
    "generate_files",
    "library_generator",
    "normalize_options",
    "storybook_configuration_generator",
]
