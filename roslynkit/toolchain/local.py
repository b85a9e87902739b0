"""
Detection of a language server the user installed themselves.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from roslynkit.toolchain.binary import BinaryDescriptor

logger = logging.getLogger(__name__)


def find_user_installed(
    binary_name: str, search_path: Optional[str] = None
) -> Optional[BinaryDescriptor]:
    """
    Look up `binary_name` on the command search path.

    Args:
        binary_name: Executable name without directory
        search_path: PATH-style string to search instead of $PATH

    Returns:
        Descriptor with no arguments and the inherited environment, or None
        if the binary is not installed
    """
    found = shutil.which(binary_name, path=search_path)
    if not found:
        return None

    path = Path(found).absolute()
    logger.info(f"Using user-installed {binary_name}: {path}")
    return BinaryDescriptor(path=path)
