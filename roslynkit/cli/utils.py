"""
Shared utilities for CLI commands.
"""

import logging
from typing import Optional

from roslynkit.config.parser import RoslynKitConfig, load_config
from roslynkit.core.notify import OnceNotifier
from roslynkit.toolchain.adapter import RoslynServerAdapter
from roslynkit.toolchain.binary import BinaryDescriptor

logger = logging.getLogger(__name__)


def load_cli_config(args) -> RoslynKitConfig:
    """Configuration named by --config, or ./roslynkit.yaml, or defaults."""
    return load_config(getattr(args, "config", None))


def create_adapter(args, config: Optional[RoslynKitConfig] = None) -> RoslynServerAdapter:
    if config is None:
        config = load_cli_config(args)
    return RoslynServerAdapter(config, OnceNotifier())


def format_descriptor(binary: BinaryDescriptor) -> str:
    """Human-readable rendering of a launch descriptor."""
    lines = [f"path: {binary.path}"]
    if binary.arguments:
        lines.append(f"arguments: {' '.join(binary.arguments)}")
    if binary.env:
        for key, value in sorted(binary.env.items()):
            lines.append(f"env: {key}={value}")
    return "\n".join(lines)
