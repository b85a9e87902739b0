"""
Network download with retry logic and digest verification.

This module provides the archive download step of the acquisition pipeline:
- HTTP/HTTPS downloads through a caller-supplied `requests.Session`
- Progress reporting (bytes, percentage, speed)
- Retry logic with exponential backoff for transport failures
- SHA-256 verification while streaming; a mismatch is never retried
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

import requests
from requests.exceptions import RequestException

from roslynkit.core.exceptions import DigestMismatchError, DownloadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192
SUPPORTED_ALGORITHMS = ("sha256", "sha512")


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second

    def __str__(self) -> str:
        return format_progress(self)


def split_digest(digest: str) -> Tuple[str, str]:
    """
    Split a digest of the form 'algorithm:hex' (or bare hex).

    Example:
        >>> split_digest("sha256:ABC")
        ('sha256', 'abc')
        >>> split_digest("abc")
        ('sha256', 'abc')

    Raises:
        DownloadError: If the algorithm is not sha256 or sha512
    """
    if ":" in digest:
        algorithm, value = digest.split(":", 1)
        algorithm = algorithm.strip().lower()
    else:
        algorithm, value = "sha256", digest

    if algorithm not in SUPPORTED_ALGORITHMS:
        raise DownloadError(f"Unsupported digest algorithm '{algorithm}' in {digest}")
    return algorithm, value.strip().lower()


class StreamingHasher:
    """Compute hash incrementally for streaming downloads."""

    def __init__(self, algorithm: str = "sha256"):
        """
        Initialize streaming hasher.

        Args:
            algorithm: Hash algorithm ('sha256' or 'sha512')

        Raises:
            ValueError: If algorithm is not supported
        """
        self.algorithm = algorithm.lower()

        if self.algorithm == "sha256":
            self.hasher = hashlib.sha256()
        elif self.algorithm == "sha512":
            self.hasher = hashlib.sha512()
        else:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")

    def update(self, data: bytes):
        self.hasher.update(data)

    def finalize(self) -> str:
        """Get final hash value as hex string."""
        return self.hasher.hexdigest()

    def verify(self, expected_hash: str) -> bool:
        return self.finalize().lower() == expected_hash.lower()


def download_file(
    url: str,
    destination: Path,
    expected_digest: Optional[str] = None,
    session: Optional[requests.Session] = None,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: int = 30,
    max_retries: int = 3,
) -> Path:
    """
    Download file from URL to destination with retry logic and digest verification.

    Args:
        url: URL to download from
        destination: Local path to save file
        expected_digest: Expected digest ('sha256:<hex>' or bare hex)
        session: HTTP session to use (a fresh one if None)
        progress_callback: Optional callback for progress updates
        timeout: Request timeout in seconds
        max_retries: Maximum number of attempts for transport failures

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If download fails after retries or the digest
            algorithm is unsupported
        DigestMismatchError: If the content digest doesn't match
        ValueError: If URL or destination is invalid
    """
    if not url:
        raise ValueError("URL cannot be empty")

    if not destination:
        raise ValueError("Destination path cannot be empty")

    if expected_digest:
        # Rejects unsupported algorithms before any request is made
        split_digest(expected_digest)

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    session = session or requests.Session()

    for attempt in range(max_retries):
        try:
            return _download_with_progress(
                session=session,
                url=url,
                destination=destination,
                expected_digest=expected_digest,
                progress_callback=progress_callback,
                timeout=timeout,
            )
        except RequestException as e:
            if attempt == max_retries - 1:
                raise DownloadError(
                    f"Download of {url} failed after {max_retries} attempts: {e}"
                ) from e

            backoff_seconds = 2**attempt
            logger.warning(
                f"Download attempt {attempt + 1} failed: {e}. "
                f"Retrying in {backoff_seconds}s..."
            )
            time.sleep(backoff_seconds)
        except OSError as e:
            raise DownloadError(f"Failed to write {destination}: {e}") from e

    raise DownloadError(f"Download of {url} failed for unknown reason")


def _download_with_progress(
    session: requests.Session,
    url: str,
    destination: Path,
    expected_digest: Optional[str],
    progress_callback: Optional[Callable[[DownloadProgress], None]],
    timeout: int,
) -> Path:
    """
    Perform download with streaming, hashing and progress updates.

    Raises:
        DigestMismatchError: If the digest doesn't match
        RequestException: If HTTP request fails
    """
    logger.info(f"Downloading from {url}")

    response = session.get(url, stream=True, timeout=timeout, allow_redirects=True)
    response.raise_for_status()

    content_length = response.headers.get("content-length")
    total_size = int(content_length) if content_length else 0

    hasher = None
    expected_hex = None
    if expected_digest:
        algorithm, expected_hex = split_digest(expected_digest)
        hasher = StreamingHasher(algorithm)

    downloaded = 0
    start_time = time.time()
    last_progress_time = start_time

    with open(destination, "wb") as f:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if not chunk:
                continue
            f.write(chunk)
            downloaded += len(chunk)
            if hasher:
                hasher.update(chunk)

            # Report progress at most twice a second
            current_time = time.time()
            if progress_callback and (
                current_time - last_progress_time >= 0.5 or downloaded == total_size
            ):
                elapsed = current_time - start_time
                progress_callback(
                    DownloadProgress(
                        bytes_downloaded=downloaded,
                        total_bytes=total_size if total_size > 0 else downloaded,
                        percentage=(downloaded / total_size * 100)
                        if total_size > 0
                        else 0,
                        speed_bps=downloaded / elapsed if elapsed > 0 else 0,
                    )
                )
                last_progress_time = current_time

    if hasher and expected_hex:
        if not hasher.verify(expected_hex):
            actual = hasher.finalize()
            destination.unlink()
            raise DigestMismatchError(
                f"Digest mismatch for {url}: expected {expected_hex}, got {actual}"
            )
        logger.info("Digest verified successfully")

    logger.info(f"Download complete: {destination}")
    return destination


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.total_bytes > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s"
        )
    return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"
