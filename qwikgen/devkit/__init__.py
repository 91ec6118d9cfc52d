"""Workspace tree, project configuration and task composition primitives.

Quick usage::

    from qwikgen.devkit import WorkspaceTree, run_tasks_in_serial

    tree = WorkspaceTree()
    tree.write("libs/my-lib/README.md", "# my-lib\\n")
    for change in tree.list_changes():
        print(change.type.value, change.path)
"""

from qwikgen.devkit.commit import flush_changes
from qwikgen.devkit.format import format_files
from qwikgen.devkit.json import read_json, update_json, write_json
from qwikgen.devkit.projects import (
    ProjectConfiguration,
    TargetConfiguration,
    add_project_configuration,
    add_targets,
    get_projects,
    merge_targets,
    read_project_configuration,
    update_project_configuration,
)
from qwikgen.devkit.tasks import (
    GeneratorCallback,
    GeneratorStep,
    SerialTaskRunner,
    TaskState,
    run_generators,
    run_tasks_in_serial,
)
from qwikgen.devkit.tree import (
    ChangeType,
    FileChange,
    WorkspaceTree,
    join_path_fragments,
    normalize_path,
)

__all__ = [
    "ChangeType",
    "FileChange",
    "GeneratorCallback",
    "GeneratorStep",
    "ProjectConfiguration",
    "SerialTaskRunner",
    "TargetConfiguration",
    "TaskState",
    "WorkspaceTree",
    "add_project_configuration",
    "add_targets",
    "flush_changes",
    "format_files",
    "get_projects",
    "join_path_fragments",
    "merge_targets",
    "normalize_path",
    "read_json",
    "read_project_configuration",
    "run_generators",
    "run_tasks_in_serial",
    "update_json",
    "update_project_configuration",
    "write_json",
]
