"""
Properties command implementation.

Queries MSBuild properties of a project file.
"""

import logging

from roslynkit.cli.utils import load_cli_config
from roslynkit.project.msbuild import msbuild_get_properties

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the properties command.

    Properties that cannot be determined are reported as missing; the exit
    code is 1 if any requested property is missing.
    """
    config = load_cli_config(args)
    if not args.project.exists():
        logger.error(f"Project file not found: {args.project}")
        return 1

    properties = msbuild_get_properties(args.project, args.names, dotnet=config.dotnet)

    missing = 0
    for name in args.names:
        if name in properties:
            print(f"{name}={properties[name]}")
        else:
            logger.warning(f"{name}: not found")
            missing += 1

    return 1 if missing else 0
