"""
dotnet task templates offered for a C# source file.

Which templates are offered depends on the owning project: `dotnet run` only
for executables and the test templates only for test projects, as reported
by MSBuild.
"""

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from roslynkit.project.discovery import CS_PROJECT, CS_PROJECT_DIR, find_project_file
from roslynkit.project.msbuild import msbuild_get_properties

logger = logging.getLogger(__name__)

PropertyReader = Callable[[Path, Iterable[str]], Dict[str, str]]

QUERIED_PROPERTIES = ("OutputType", "IsTestProject")
RUNNABLE_OUTPUT_TYPES = ("exe", "winexe")

PROJECT_VAR = f"${CS_PROJECT}"
PROJECT_DIR_VAR = f"${CS_PROJECT_DIR}"
SYMBOL_VAR = "$SYMBOL"


@dataclass
class TaskTemplate:
    """A command the host can offer to run for the current file."""

    label: str
    command: str
    args: List[str] = field(default_factory=list)
    cwd: Optional[str] = PROJECT_DIR_VAR
    tags: List[str] = field(default_factory=list)
    reveal: str = "always"  # 'always', 'never'
    hide: str = "never"  # 'never', 'always', 'on_success'
    allow_concurrent_runs: bool = False
    use_new_terminal: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


def _dotnet_task(label: str, args: List[str], tag: str, **kwargs) -> TaskTemplate:
    return TaskTemplate(label=label, command="dotnet", args=args, tags=[tag], **kwargs)


def _capabilities(props: Dict[str, str]) -> tuple:
    can_run = props.get("OutputType", "").lower() in RUNNABLE_OUTPUT_TYPES
    is_test = props.get("IsTestProject", "").lower() == "true"
    return can_run, is_test


def associated_tasks(
    buffer_path: Path,
    property_reader: PropertyReader = msbuild_get_properties,
) -> Optional[List[TaskTemplate]]:
    """
    Task templates for the project owning `buffer_path`.

    Args:
        buffer_path: Source file the tasks are offered for
        property_reader: Queries MSBuild properties of a project file

    Returns:
        Ordered templates, or None if the file belongs to no project
    """
    project_file = find_project_file(buffer_path)
    if project_file is None:
        return None

    can_run = is_test = False
    if project_file.suffix.lower() == ".csproj":
        can_run, is_test = _capabilities(property_reader(project_file, QUERIED_PROPERTIES))

    templates = [
        _dotnet_task("Build current project", ["build", PROJECT_VAR], "dotnet-build"),
    ]

    if can_run:
        templates.append(
            _dotnet_task(
                "Run current project", ["run", "--project", PROJECT_VAR], "dotnet-run"
            )
        )

    if is_test:
        templates.append(
            _dotnet_task("Test current project", ["test", PROJECT_VAR], "dotnet-test")
        )
        templates.append(
            _dotnet_task(
                "Test (symbol)",
                ["test", PROJECT_VAR, "--filter", f"FullyQualifiedName~{SYMBOL_VAR}"],
                "dotnet-test-symbol",
            )
        )

    templates.append(
        _dotnet_task(
            "Restore current project",
            ["restore", PROJECT_VAR],
            "dotnet-restore",
            reveal="always",
            hide="on_success",
            allow_concurrent_runs=True,
        )
    )
    templates.append(
        _dotnet_task(
            "Publish current project to Release",
            ["publish", "--project", PROJECT_VAR, "-c", "Release"],
            "dotnet-publish",
        )
    )

    logger.debug(f"{len(templates)} task templates for {project_file}")
    return templates
