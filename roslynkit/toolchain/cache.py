"""
On-disk cache of downloaded language-server binaries.

Each version lives in its own directory inside a container directory together
with a JSON sidecar recording the digest it was verified against:

    <container>/<prefix>-<version>/<binary>
    <container>/<prefix>-<version>/metadata   {"metadata_version": 1, "digest": ...}

Only the newest version is retained; installing a version evicts all others.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from roslynkit.core.exceptions import LivenessCheckError
from roslynkit.core.filesystem import atomic_write, remove_matching
from roslynkit.core.process import try_exec
from roslynkit.toolchain.binary import BinaryDescriptor

logger = logging.getLogger(__name__)

METADATA_FILE = "metadata"
METADATA_VERSION = 1


@dataclass(frozen=True)
class CacheRecord:
    """Sidecar metadata written next to a cached binary."""

    metadata_version: int
    digest: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps(
            {"metadata_version": self.metadata_version, "digest": self.digest}
        )

    @classmethod
    def read_from_file(cls, path: Path) -> "CacheRecord":
        """
        Raises:
            OSError: If the file cannot be read
            ValueError: If the content is not a valid record
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict) or not isinstance(
            data.get("metadata_version"), int
        ):
            raise ValueError(f"Invalid cache metadata in {path}")

        digest = data.get("digest")
        if digest is not None and not isinstance(digest, str):
            raise ValueError(f"Invalid digest in {path}")

        return cls(metadata_version=data["metadata_version"], digest=digest)

    def write_to_file(self, path: Path) -> None:
        atomic_write(path, self.to_json())


class CacheStore:
    """
    Decides whether a previously fetched binary can be reused.

    Example:
        >>> store = CacheStore(container, "roslyn", "csharp-language-server")
        >>> store.validate("0.1.0", "sha256:abc...")   # None means: download
    """

    def __init__(
        self,
        container_dir: Path,
        prefix: str,
        binary_name: str,
        liveness_args: Sequence[str] = ("--version",),
        liveness_check: Callable[..., object] = try_exec,
    ):
        self.container_dir = Path(container_dir)
        self.prefix = prefix
        self.binary_name = binary_name
        self.liveness_args = tuple(liveness_args)
        self.liveness_check = liveness_check

    def version_dir(self, version: str) -> Path:
        return self.container_dir / f"{self.prefix}-{version}"

    def staging_dir(self, version: str) -> Path:
        return self.container_dir / f"{self.prefix}-{version}-tmp"

    def binary_path(self, version: str) -> Path:
        return self.version_dir(version) / self.binary_name

    def read_record(self, version_dir: Path) -> Optional[CacheRecord]:
        """Read the sidecar of `version_dir`, or None if absent or unreadable."""
        path = Path(version_dir) / METADATA_FILE
        try:
            return CacheRecord.read_from_file(path)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.debug(f"Ignoring unreadable cache metadata {path}: {e}")
            return None

    def write_record(self, version_dir: Path, digest: Optional[str]) -> CacheRecord:
        record = CacheRecord(metadata_version=METADATA_VERSION, digest=digest)
        record.write_to_file(Path(version_dir) / METADATA_FILE)
        return record

    def _is_alive(self, binary: Path) -> bool:
        try:
            self.liveness_check(binary, self.liveness_args)
            return True
        except LivenessCheckError as e:
            logger.warning(f"Unable to run {binary}, redownloading: {e}")
            return False

    def validate(
        self, version: str, expected_digest: Optional[str]
    ) -> Optional[BinaryDescriptor]:
        """
        Check whether the cached copy of `version` can be used as-is.

        A recorded digest that differs from `expected_digest` is always a miss.
        When either digest is unknown the binary is trusted if it runs.

        Returns:
            Descriptor of the cached binary, or None if it must be downloaded
        """
        binary = self.binary_path(version)
        record = self.read_record(self.version_dir(version))
        if record is None:
            return None

        actual_digest = record.digest
        if actual_digest and expected_digest:
            if actual_digest != expected_digest:
                logger.info(
                    f"Digest mismatch for {binary}, downloading new asset. "
                    f"Expected: {expected_digest}, Got: {actual_digest}"
                )
                return None

        if not self._is_alive(binary):
            return None

        logger.debug(f"Reusing cached binary {binary}")
        return BinaryDescriptor(path=binary)

    def latest_cached_binary(self) -> Optional[BinaryDescriptor]:
        """
        Return the binary of the last version directory in listing order.

        No version comparison is made and nothing is downloaded.
        """
        last_dir = None
        try:
            with os.scandir(self.container_dir) as entries:
                for entry in entries:
                    if entry.is_dir():
                        last_dir = Path(entry.path)
        except OSError as e:
            logger.debug(f"No cached binary in {self.container_dir}: {e}")
            return None

        if last_dir is None:
            logger.debug(f"No cached binary in {self.container_dir}")
            return None

        binary = last_dir / self.binary_name
        if not binary.exists():
            logger.warning(f"Missing {self.binary_name} binary in directory {last_dir}")
            return None

        return BinaryDescriptor(path=binary)

    def evict_except(self, keep: Path) -> None:
        """Delete every entry of the container directory except `keep`."""
        keep = Path(keep)
        remove_matching(self.container_dir, lambda entry: entry != keep)
