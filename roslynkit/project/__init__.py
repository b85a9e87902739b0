"""
dotnet project support: project discovery, MSBuild properties and task templates.
"""

from .discovery import build_task_variables, find_project_file, task_variables_for
from .msbuild import extract_properties, msbuild_get_properties, parse_property_output
from .tasks import TaskTemplate, associated_tasks

__all__ = [
    "build_task_variables",
    "find_project_file",
    "task_variables_for",
    "extract_properties",
    "msbuild_get_properties",
    "parse_property_output",
    "TaskTemplate",
    "associated_tasks",
]
