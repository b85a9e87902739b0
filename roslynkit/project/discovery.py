"""
Project-file discovery for C# source files.

The nearest ancestor `.csproj` wins; a `.sln` is used only when no project
file exists anywhere above the buffer.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

CS_PROJECT = "CS_PROJECT"
CS_PROJECT_DIR = "CS_PROJECT_DIR"
CS_PROJECT_NAME = "CS_PROJECT_NAME"
CS_SOLUTION = "CS_SOLUTION"


def _has_extension(path: Path, extension: str) -> bool:
    return path.suffix.lower() == extension


def _project_files(directory: Path):
    try:
        entries = sorted(os.scandir(directory), key=lambda e: e.name)
    except OSError:
        return
    for entry in entries:
        try:
            if entry.is_file():
                yield Path(entry.path)
        except OSError:
            continue


def find_project_file(buffer_path: Path) -> Optional[Path]:
    """
    Find the project or solution a source file belongs to.

    Ancestors of the file's directory are searched from the nearest upwards.
    The first `.csproj` found ends the search; otherwise the first `.sln`
    seen on the way up is returned.

    Args:
        buffer_path: Path of the source file

    Returns:
        Path of the .csproj or .sln, or None if neither exists
    """
    buffer_path = Path(buffer_path).absolute()
    start = buffer_path if buffer_path.is_dir() else buffer_path.parent

    solution: Optional[Path] = None
    for directory in (start, *start.parents):
        for candidate in _project_files(directory):
            if _has_extension(candidate, ".csproj"):
                logger.debug(f"Found project {candidate} for {buffer_path}")
                return candidate
            if _has_extension(candidate, ".sln") and solution is None:
                solution = candidate

    if solution is not None:
        logger.debug(f"Found solution {solution} for {buffer_path}")
    return solution


def build_task_variables(project_file: Path) -> Dict[str, str]:
    """Task variables describing a discovered project or solution."""
    project_file = Path(project_file)
    variables = {
        CS_PROJECT: str(project_file),
        CS_PROJECT_DIR: str(project_file.parent),
        CS_PROJECT_NAME: project_file.stem,
    }
    if _has_extension(project_file, ".sln"):
        variables[CS_SOLUTION] = project_file.name
    return variables


def task_variables_for(buffer_path: Path) -> Dict[str, str]:
    """Task variables for the project owning `buffer_path`, empty if none."""
    project_file = find_project_file(buffer_path)
    if project_file is None:
        return {}
    return build_task_variables(project_file)
