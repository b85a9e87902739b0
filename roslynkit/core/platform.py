"""
Platform detection for roslynkit.

This module detects the current operating system and CPU architecture and maps
them onto the naming schemes used by the language-server distributions:

- Release assets use Rust-style target triples
  (e.g. 'x86_64-unknown-linux-gnu', 'aarch64-apple-darwin').
- NuGet packages use .NET runtime identifiers (e.g. 'linux-x64', 'osx-arm64').

Usage:
    from roslynkit.core.platform import detect_platform

    info = detect_platform()
    print(info.platform_string())   # 'linux-x64'
    print(info.target_triple())     # 'x86_64-unknown-linux-gnu'
"""

import functools
import platform
from dataclasses import dataclass

from roslynkit.core.exceptions import UnsupportedPlatformError

# os -> vendor/os part of the target triple
_TRIPLE_OS = {
    "linux": "unknown-linux-gnu",
    "macos": "apple-darwin",
    "windows": "pc-windows-msvc",
}

# arch -> cpu part of the target triple
_TRIPLE_ARCH = {
    "x64": "x86_64",
    "arm64": "aarch64",
}

_RID_OS = {
    "linux": "linux",
    "macos": "osx",
    "windows": "win",
}


@dataclass(frozen=True)
class PlatformInfo:
    """
    Operating system and CPU architecture of a host.

    Attributes:
        os: Operating system ('windows', 'linux', 'macos', or a raw name)
        arch: CPU architecture ('x64', 'arm64', 'x86', 'arm', or a raw name)
    """

    os: str
    arch: str

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    def platform_string(self) -> str:
        """
        Get canonical platform string (e.g., 'linux-x64', 'macos-arm64').

        Example:
            >>> PlatformInfo('linux', 'x64').platform_string()
            'linux-x64'
        """
        return f"{self.os}-{self.arch}"

    def target_triple(self) -> str:
        """
        Get the '{arch}-{os}' triple used to name prebuilt release assets.

        Raises:
            UnsupportedPlatformError: If no prebuilt binary exists for this
                architecture or operating system

        Example:
            >>> PlatformInfo('macos', 'arm64').target_triple()
            'aarch64-apple-darwin'
        """
        arch = _TRIPLE_ARCH.get(self.arch)
        if arch is None:
            raise UnsupportedPlatformError(f"Unsupported architecture: {self.arch}")

        os_part = _TRIPLE_OS.get(self.os)
        if os_part is None:
            raise UnsupportedPlatformError(
                f"Running on unsupported operating system: {self.os}"
            )

        return f"{arch}-{os_part}"

    def archive_extension(self) -> str:
        """Archive format of release assets: 'zip' on Windows, else 'tar.gz'."""
        return "zip" if self.is_windows else "tar.gz"

    def runtime_identifier(self) -> str:
        """
        Get the .NET runtime identifier (RID) for this platform.

        Raises:
            UnsupportedPlatformError: If the platform has no RID mapping

        Example:
            >>> PlatformInfo('windows', 'x64').runtime_identifier()
            'win-x64'
        """
        os_part = _RID_OS.get(self.os)
        if os_part is None or self.arch not in ("x64", "arm64"):
            raise UnsupportedPlatformError(
                f"No .NET runtime identifier for platform: {self.platform_string()}"
            )
        return f"{os_part}-{self.arch}"

    def executable_name(self, base: str) -> str:
        """Append the platform's executable suffix to `base`."""
        return f"{base}.exe" if self.is_windows else base

    def __str__(self) -> str:
        return self.platform_string()


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.

    Returns:
        PlatformInfo instance with detected platform information
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def _detect_os() -> str:
    """
    Detect operating system.

    Returns:
        Normalized OS name: 'windows', 'linux', 'macos', or the raw
        lower-cased system name for anything else
    """
    system = platform.system().lower()

    if system == "windows":
        return "windows"
    elif system == "linux":
        return "linux"
    elif system == "darwin":
        return "macos"
    else:
        return system


def _detect_architecture() -> str:
    """
    Detect CPU architecture.

    Returns:
        Normalized architecture: 'x64', 'arm64', 'x86', 'arm', or the raw name
    """
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    else:
        return machine


def clear_platform_cache():
    """
    Clear the platform detection cache.

    This forces the next call to detect_platform() to re-detect.
    """
    detect_platform.cache_clear()


__all__ = [
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
]
