"""
Download-based installation of the language-server binary.

This module orchestrates the acquisition pipeline for prebuilt archives:
1. Reuse a validated cached copy when possible
2. Download the archive into a staging directory, verifying its digest
3. Extract it and locate the executable anywhere in the tree
4. Promote the executable into the version directory and evict older versions
5. Record the digest, mark the binary executable and warm it up in the background
"""

import logging
import shutil
import time
from pathlib import Path
from typing import Callable, Optional, Sequence

import requests

from roslynkit.core.download import DownloadProgress, download_file
from roslynkit.core.exceptions import (
    AcquisitionError,
    BinaryNotFoundError,
    DownloadError,
)
from roslynkit.core.filesystem import (
    FilesystemError,
    extract_archive,
    find_binary_in_dir,
    make_executable,
    safe_rmtree,
)
from roslynkit.core.platform import PlatformInfo, detect_platform
from roslynkit.core.process import spawn_detached, warm_up
from roslynkit.toolchain.binary import BinaryDescriptor
from roslynkit.toolchain.cache import CacheStore
from roslynkit.toolchain.resolver import ASSET_PREFIX, ToolchainVersion

logger = logging.getLogger(__name__)

VERSION_DIR_PREFIX = "roslyn"


def asset_kind(url: str) -> str:
    """Archive type of an asset URL: 'zip' or 'tar.gz'."""
    return "zip" if url.lower().endswith(".zip") else "tar.gz"


class BinaryInstaller:
    """
    Install a prebuilt language-server binary from a release archive.

    Example:
        >>> installer = BinaryInstaller()
        >>> binary = installer.acquire(version, Path("~/.roslynkit/languages/roslyn"))
        >>> binary.path
        PosixPath('/home/user/.roslynkit/languages/roslyn/roslyn-0.1.0/csharp-language-server')
    """

    def __init__(
        self,
        binary_base_name: str = ASSET_PREFIX,
        prefix: str = VERSION_DIR_PREFIX,
        platform: Optional[PlatformInfo] = None,
        session: Optional[requests.Session] = None,
        warmup_args: Optional[Sequence[str]] = ("--download",),
        progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
        spawn: Callable[[Callable[[], None]], None] = spawn_detached,
    ):
        """
        Args:
            binary_base_name: Executable name without platform suffix
            prefix: Version directory prefix inside the container
            platform: Target platform (auto-detected if None)
            session: HTTP session for downloads
            warmup_args: Arguments of the post-install warm-up run, None to skip it
            progress_callback: Optional download progress callback
            spawn: Scheduler for the detached warm-up
        """
        self.platform = platform or detect_platform()
        self.binary_name = self.platform.executable_name(binary_base_name)
        self.prefix = prefix
        self.session = session
        self.warmup_args = tuple(warmup_args) if warmup_args is not None else None
        self.progress_callback = progress_callback
        self.spawn = spawn

    def cache_store(self, container_dir: Path) -> CacheStore:
        return CacheStore(container_dir, self.prefix, self.binary_name)

    def cached_binary(self, container_dir: Path) -> Optional[BinaryDescriptor]:
        """Offline lookup of the most recently installed binary, if any."""
        return self.cache_store(container_dir).latest_cached_binary()

    def acquire(self, version: ToolchainVersion, container_dir: Path) -> BinaryDescriptor:
        """
        Produce a runnable binary for `version` inside `container_dir`.

        Raises:
            DownloadError: If the archive cannot be fetched
            DigestMismatchError: If the archive digest does not match
            ExtractionError: If the archive cannot be unpacked
            BinaryNotFoundError: If the archive holds no server executable
        """
        container_dir = Path(container_dir)
        store = self.cache_store(container_dir)

        cached = store.validate(version.name, version.digest)
        if cached is not None:
            logger.info(f"Using cached {self.binary_name} {version.name}")
            return cached

        if not version.url:
            raise DownloadError(f"No download URL for version {version.name}")

        version_dir = store.version_dir(version.name)
        staging_dir = store.staging_dir(version.name)
        binary_path = version_dir / self.binary_name

        start = time.time()
        try:
            found = self._download_and_extract(version, staging_dir)
            self._promote(found, version_dir, binary_path)
            store.evict_except(version_dir)
            store.write_record(version_dir, version.digest)
            make_executable(binary_path)
        except AcquisitionError:
            raise
        except (OSError, FilesystemError) as e:
            raise AcquisitionError(
                f"Failed to install {self.binary_name} into {version_dir}: {e}"
            ) from e
        finally:
            if staging_dir.exists():
                try:
                    safe_rmtree(staging_dir, require_prefix=container_dir)
                except FilesystemError as e:
                    logger.warning(f"Failed to remove staging directory: {e}")

        logger.info(
            f"Installed {self.binary_name} {version.name} in {time.time() - start:.2f}s"
        )

        if self.warmup_args is not None:
            args = self.warmup_args
            self.spawn(lambda: warm_up(binary_path, args))

        return BinaryDescriptor(path=binary_path)

    def _download_and_extract(self, version: ToolchainVersion, staging_dir: Path) -> Path:
        """Fetch and unpack the archive, returning the located executable."""
        if staging_dir.exists():
            safe_rmtree(staging_dir)
        staging_dir.mkdir(parents=True)

        archive_path = staging_dir / f"asset.{asset_kind(version.url)}"
        download_file(
            version.url,
            archive_path,
            expected_digest=version.digest,
            session=self.session,
            progress_callback=self.progress_callback,
        )

        extract_dir = staging_dir / "extracted"
        logger.info(f"Extracting {archive_path.name} to {extract_dir}")
        extract_archive(archive_path, extract_dir)

        found = find_binary_in_dir(extract_dir, self.binary_name)
        if found is None:
            raise BinaryNotFoundError(self.binary_name, extract_dir)
        return found

    def _promote(self, found: Path, version_dir: Path, binary_path: Path) -> None:
        """Copy the located executable into a fresh version directory."""
        if version_dir.exists():
            safe_rmtree(version_dir)
        version_dir.mkdir(parents=True)
        shutil.copy2(found, binary_path)
