"""
Cached command implementation.

Prints the most recently cached language server without touching the network.
"""

import logging

from roslynkit.cli.utils import create_adapter, format_descriptor

logger = logging.getLogger(__name__)


def run(args) -> int:
    adapter = create_adapter(args)
    binary = adapter.cached_server_binary()
    if binary is None:
        logger.error(f"No cached language server in {adapter.container_dir}")
        return 1

    print(format_descriptor(binary))
    return 0
