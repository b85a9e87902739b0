"""
Install command implementation.

Locates or installs the C# language server and prints how to launch it.
"""

import logging

from roslynkit.cli.utils import create_adapter, format_descriptor, load_cli_config
from roslynkit.core.exceptions import RoslynKitError

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    config = load_cli_config(args)
    if args.strategy:
        config.server.acquisition = args.strategy
    if args.pre_release is not None:
        config.server.pre_release = args.pre_release

    adapter = create_adapter(args, config)
    logger.debug(f"Acquisition strategy: {config.server.acquisition}")

    try:
        binary = adapter.get_binary()
    except RoslynKitError as e:
        logger.error(f"Could not provide the language server: {e}")
        return 1

    print(format_descriptor(binary))
    return 0
