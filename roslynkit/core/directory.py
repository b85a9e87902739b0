"""
Directory structure management for roslynkit.

Directory Structure:
    Global Cache (~/.roslynkit/ or %USERPROFILE%\\.roslynkit\\):
        - languages/<server>/                 : container directory per server
            - <prefix>-<version>/             : one cached version
                - <binary>
                - metadata                    : JSON sidecar (digest, format)
            - <prefix>-<version>-tmp/         : transient staging during install
"""

import os
from pathlib import Path
from typing import Optional

from roslynkit.core.exceptions import RoslynKitError


class DirectoryError(RoslynKitError):
    """Base exception for directory-related errors."""

    pass


def get_global_cache_dir() -> Path:
    """
    Get the platform-specific global cache directory path.

    Returns:
        - Windows: %USERPROFILE%\\.roslynkit
        - Linux/macOS: ~/.roslynkit
    """
    if os.name == "nt":
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise DirectoryError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine global cache directory."
            )
        return Path(user_profile) / ".roslynkit"
    return Path.home() / ".roslynkit"


def get_container_dir(server_name: str, cache_dir: Optional[Path] = None) -> Path:
    """
    Get (and create) the container directory for one language server.

    Example:
        >>> get_container_dir("roslyn")
        PosixPath('/home/user/.roslynkit/languages/roslyn')
    """
    root = Path(cache_dir) if cache_dir else get_global_cache_dir()
    container = root / "languages" / server_name
    try:
        container.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryError(f"Failed to create container directory {container}: {e}") from e
    return container
