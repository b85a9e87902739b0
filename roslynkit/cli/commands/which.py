"""
Which command implementation.
"""

import logging

from roslynkit.cli.utils import create_adapter, format_descriptor

logger = logging.getLogger(__name__)


def run(args) -> int:
    adapter = create_adapter(args)
    binary = adapter.check_if_user_installed()
    if binary is None:
        logger.error("No user-installed language server found on PATH")
        return 1

    print(format_descriptor(binary))
    return 0
