"""
Centralized exception hierarchy for roslynkit.

This module defines all custom exceptions used across the codebase
so callers can distinguish fatal failures from recoverable ones.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class RoslynKitError(Exception):
    """Base exception for all roslynkit errors."""

    pass


class ConfigError(RoslynKitError):
    """Configuration parsing or validation error."""

    pass


class PreconditionMissingError(RoslynKitError):
    """Raised when a required external tool (e.g. dotnet) is not installed."""

    def __init__(self, tool: str, message: str = ""):
        self.tool = tool
        super().__init__(message or f"Required tool not found on PATH: {tool}")


# ============================================================================
# Version Resolution Exceptions
# ============================================================================


class ResolutionError(RoslynKitError):
    """Base exception when the wanted server version cannot be determined."""

    pass


class UnsupportedPlatformError(ResolutionError):
    """Raised when no prebuilt server exists for the current OS/architecture."""

    pass


class NoMatchingAssetError(ResolutionError):
    """Raised when a release carries no asset with the expected name."""

    def __init__(self, asset_name: str, release: str = ""):
        self.asset_name = asset_name
        self.release = release
        msg = f"No asset found matching '{asset_name}'"
        if release:
            msg += f" in release {release}"
        super().__init__(msg)


class FeedUnavailableError(ResolutionError):
    """Raised when the package search command exits with a failure status."""

    pass


class VersionFieldMissingError(ResolutionError):
    """Raised when a package search result carries no usable version field."""

    pass


# ============================================================================
# Acquisition Exceptions
# ============================================================================


class AcquisitionError(RoslynKitError):
    """Base exception for failures while producing a runnable binary."""

    pass


class DownloadError(AcquisitionError):
    """Exception raised when download fails."""

    pass


class DigestMismatchError(DownloadError):
    """Exception raised when a downloaded artifact fails digest verification."""

    pass


class ExtractionError(AcquisitionError):
    """Failed to extract an archive."""

    pass


class BinaryNotFoundError(AcquisitionError):
    """Raised when the server executable is absent from an extracted tree."""

    def __init__(self, filename: str, directory):
        self.filename = filename
        self.directory = directory
        super().__init__(f"Failed to find {filename} in extracted archive {directory}")


class RestoreFailedError(AcquisitionError):
    """Raised when `dotnet restore` exits with a failure status."""

    def __init__(self, returncode: int, output: str = ""):
        self.returncode = returncode
        self.output = output
        msg = f"dotnet restore failed with exit code {returncode}"
        if output:
            msg += f": {output.strip()}"
        super().__init__(msg)


class RelocationError(AcquisitionError, OSError):
    """Raised when restored package content cannot be moved into the cache."""

    pass


# ============================================================================
# Cache Exceptions
# ============================================================================


class LivenessCheckError(RoslynKitError):
    """Raised when a cached binary fails to execute.

    Never surfaced to callers of the acquisition pipeline: a failed liveness
    check is treated as a cache miss.
    """

    pass
