"""
Core functionality for roslynkit.

This package contains the foundational modules that other components depend on.
"""

from .directory import (
    get_global_cache_dir,
    get_container_dir,
    DirectoryError,
)

from .platform import (
    PlatformInfo,
    detect_platform,
    clear_platform_cache,
)

from .notify import OnceNotifier

from .exceptions import (
    RoslynKitError,
    ConfigError,
    PreconditionMissingError,
    ResolutionError,
    UnsupportedPlatformError,
    NoMatchingAssetError,
    FeedUnavailableError,
    VersionFieldMissingError,
    AcquisitionError,
    DownloadError,
    DigestMismatchError,
    ExtractionError,
    BinaryNotFoundError,
    RestoreFailedError,
    RelocationError,
    LivenessCheckError,
)

__all__ = [
    "get_global_cache_dir",
    "get_container_dir",
    "DirectoryError",
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
    "OnceNotifier",
    "RoslynKitError",
    "ConfigError",
    "PreconditionMissingError",
    "ResolutionError",
    "UnsupportedPlatformError",
    "NoMatchingAssetError",
    "FeedUnavailableError",
    "VersionFieldMissingError",
    "AcquisitionError",
    "DownloadError",
    "DigestMismatchError",
    "ExtractionError",
    "BinaryNotFoundError",
    "RestoreFailedError",
    "RelocationError",
    "LivenessCheckError",
]
