"""
Language-server toolchain acquisition.

Version resolution, the on-disk cache and the two installers. The host-facing
RoslynServerAdapter lives in roslynkit.toolchain.adapter.
"""

from .binary import BinaryDescriptor
from .resolver import (
    ToolchainVersion,
    VersionResolver,
    ReleaseIndexResolver,
    FeedSearchResolver,
    parse_search_output,
)
from .local import find_user_installed
from .cache import CacheRecord, CacheStore
from .installer import BinaryInstaller
from .restore import RestoreInstaller

__all__ = [
    "BinaryDescriptor",
    "ToolchainVersion",
    "VersionResolver",
    "ReleaseIndexResolver",
    "FeedSearchResolver",
    "parse_search_output",
    "find_user_installed",
    "CacheRecord",
    "CacheStore",
    "BinaryInstaller",
    "RestoreInstaller",
]
