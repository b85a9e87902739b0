"""
Tasks command implementation.

Prints the dotnet task templates offered for a C# source file.
"""

import functools
import json
import logging

from roslynkit.cli.utils import load_cli_config
from roslynkit.project.discovery import task_variables_for
from roslynkit.project.msbuild import msbuild_get_properties
from roslynkit.project.tasks import associated_tasks

logger = logging.getLogger(__name__)


def run(args) -> int:
    config = load_cli_config(args)
    reader = functools.partial(msbuild_get_properties, dotnet=config.dotnet)

    templates = associated_tasks(args.file, property_reader=reader)
    if templates is None:
        logger.error(f"No .csproj or .sln found above {args.file}")
        return 1

    if args.json:
        print(
            json.dumps(
                {
                    "variables": task_variables_for(args.file),
                    "tasks": [t.to_dict() for t in templates],
                },
                indent=2,
            )
        )
        return 0

    for name, value in task_variables_for(args.file).items():
        print(f"{name}={value}")
    for template in templates:
        print(f"{template.label}: {template.command} {' '.join(template.args)}")
    return 0
