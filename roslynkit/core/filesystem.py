"""
Cross-platform file system utilities for roslynkit.

This module provides the filesystem side of the acquisition pipeline:
- Archive extraction (zip, tar.gz) with directory traversal protection
- Locating an executable anywhere inside an extracted tree
- Safe file operations (atomic writes, safe deletion, recursive copy)
- Directory relocation with a cross-device fallback
- Cache eviction of sibling entries
"""

import errno
import logging
import os
import shutil
import stat
import sys
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import Callable, Optional, Union

from roslynkit.core.exceptions import ExtractionError, RelocationError

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"


# ============================================================================
# Error Handling
# ============================================================================


class FilesystemError(Exception):
    """Base exception for filesystem operations."""

    pass


class UnsupportedArchiveFormat(ExtractionError):
    """Archive format is not supported."""

    pass


class InsecureArchiveError(ExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to (under) parent directory.

    Example:
        >>> is_relative_to(Path("/home/user/project/file.txt"), Path("/home/user"))
        True
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def find_binary_in_dir(directory: Union[str, Path], filename: str) -> Optional[Path]:
    """
    Find a regular file named `filename` at any depth below `directory`.

    The direct child is checked first; otherwise the tree is walked with an
    explicit stack so arbitrarily deep layouts never hit recursion limits.

    Args:
        directory: Root of the extracted tree
        filename: Exact file name to look for

    Returns:
        Path to the first match, or None if the file is nowhere in the tree
    """
    directory = Path(directory)

    candidate = directory / filename
    if candidate.is_file():
        return candidate

    stack = [directory]
    while stack:
        current = stack.pop()
        try:
            entries = list(os.scandir(current))
        except OSError as e:
            logger.debug(f"Skipping unreadable directory {current}: {e}")
            continue

        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                stack.append(Path(entry.path))
            elif entry.is_file(follow_symlinks=False) and entry.name == filename:
                return Path(entry.path)

    return None


def make_executable(path: Union[str, Path]) -> None:
    """Set rwxr-xr-x on `path` (no-op on Windows)."""
    if IS_WINDOWS:
        return
    os.chmod(
        path,
        stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH,
    )


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not is_relative_to(member_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def extract_archive(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """
    Extract an archive to a destination directory.

    Supported formats:
    - .zip
    - .tar.gz, .tgz

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to
        progress_callback: Optional callback(current, total) for progress

    Raises:
        UnsupportedArchiveFormat: If archive format is not recognized
        ExtractionError: If extraction fails
        InsecureArchiveError: If archive contains malicious paths
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ExtractionError(f"Archive not found: {archive_path}")

    destination.mkdir(parents=True, exist_ok=True)
    archive_name = archive_path.name.lower()

    try:
        if archive_name.endswith(".zip"):
            _extract_zip(archive_path, destination, progress_callback)
        elif archive_name.endswith((".tar.gz", ".tgz")):
            _extract_tar(archive_path, destination, "r:gz", progress_callback)
        else:
            raise UnsupportedArchiveFormat(
                f"Unsupported archive format: {archive_path.suffix}. "
                "Supported: .zip, .tar.gz"
            )
    except (InsecureArchiveError, UnsupportedArchiveFormat):
        raise
    except Exception as e:
        raise ExtractionError(f"Failed to extract {archive_path}: {e}") from e


def _extract_zip(
    archive_path: Path,
    destination: Path,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """Extract a ZIP archive."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        members = zf.namelist()
        total = len(members)

        for member in members:
            _validate_archive_path(member, destination)

        for i, member in enumerate(members):
            zf.extract(member, destination)
            if progress_callback:
                progress_callback(i + 1, total)


def _extract_tar(
    archive_path: Path,
    destination: Path,
    mode: str,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> None:
    """Extract a tar archive with specified compression."""
    with tarfile.open(archive_path, mode) as tar:
        members = tar.getmembers()
        total = len(members)

        for member in members:
            _validate_archive_path(member.name, destination)

        # Member paths are validated above for interpreters without filters
        if sys.version_info >= (3, 12):
            tar.extractall(destination, filter="data")
        else:
            tar.extractall(destination)

        if progress_callback:
            progress_callback(total, total)


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    If the write fails, the original file (if any) remains unchanged.
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if IS_WINDOWS:

            def handle_remove_readonly(func, path, exc):
                """Error handler for Windows read-only files."""
                if not os.access(path, os.W_OK):
                    os.chmod(path, 0o777)
                    func(path)
                else:
                    raise

            shutil.rmtree(path, onerror=handle_remove_readonly)
        else:
            shutil.rmtree(path)

    except Exception as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def recursive_copy(source: Union[str, Path], destination: Union[str, Path]) -> None:
    """
    Recursively copy a directory tree, preserving file metadata.

    Raises:
        FilesystemError: If source is missing or is not a directory
    """
    source = Path(source)
    destination = Path(destination)

    if not source.exists():
        raise FilesystemError(f"Source does not exist: {source}")

    if not source.is_dir():
        raise FilesystemError(f"Source is not a directory: {source}")

    destination.mkdir(parents=True, exist_ok=True)

    for item in source.rglob("*"):
        dest_item = destination / item.relative_to(source)

        if item.is_dir():
            dest_item.mkdir(parents=True, exist_ok=True)
        else:
            dest_item.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(item, dest_item)


def relocate_directory(source: Union[str, Path], destination: Union[str, Path]) -> Path:
    """
    Move a directory, falling back to copy-then-delete across devices.

    Args:
        source: Existing directory to move
        destination: Target path (must not exist)

    Returns:
        The destination path

    Raises:
        RelocationError: If source is not a directory or the move fails
    """
    source = Path(source)
    destination = Path(destination)

    if not source.is_dir():
        raise RelocationError(
            errno.ENOENT, f"Cannot relocate missing directory: {source}"
        )

    destination.parent.mkdir(parents=True, exist_ok=True)

    try:
        os.rename(source, destination)
        return destination
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise RelocationError(
                e.errno or errno.EIO, f"Failed to move {source} to {destination}: {e}"
            ) from e
        logger.debug(f"Cross-device move of {source}, copying instead")

    try:
        recursive_copy(source, destination)
        safe_rmtree(source)
    except (OSError, FilesystemError) as e:
        raise RelocationError(
            errno.EIO, f"Failed to copy {source} to {destination}: {e}"
        ) from e

    return destination


def remove_matching(directory: Union[str, Path], predicate: Callable[[Path], bool]) -> None:
    """
    Delete every entry of `directory` for which `predicate(path)` is true.

    Failures are logged and skipped so one locked file does not abort the
    sweep.
    """
    directory = Path(directory)
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        logger.warning(f"Failed to list {directory}: {e}")
        return

    for entry in entries:
        if not predicate(entry):
            continue
        try:
            if entry.is_dir() and not entry.is_symlink():
                safe_rmtree(entry, require_prefix=directory)
            else:
                entry.unlink()
            logger.debug(f"Removed stale cache entry: {entry}")
        except (OSError, FilesystemError) as e:
            logger.warning(f"Failed to remove {entry}: {e}")


__all__ = [
    "FilesystemError",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    "is_relative_to",
    "find_binary_in_dir",
    "make_executable",
    "extract_archive",
    "atomic_write",
    "safe_rmtree",
    "recursive_copy",
    "relocate_directory",
    "remove_matching",
]
