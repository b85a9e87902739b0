"""
Unit tests for platform detection and asset naming.
"""

import pytest
from unittest.mock import patch

from roslynkit.core.exceptions import UnsupportedPlatformError
from roslynkit.core.platform import (
    PlatformInfo,
    clear_platform_cache,
    detect_platform,
)


class TestTargetTriple:
    """Test mapping of (os, arch) onto release asset triples."""

    @pytest.mark.parametrize(
        "os_name,arch,expected",
        [
            ("linux", "x64", "x86_64-unknown-linux-gnu"),
            ("linux", "arm64", "aarch64-unknown-linux-gnu"),
            ("macos", "x64", "x86_64-apple-darwin"),
            ("macos", "arm64", "aarch64-apple-darwin"),
            ("windows", "x64", "x86_64-pc-windows-msvc"),
            ("windows", "arm64", "aarch64-pc-windows-msvc"),
        ],
    )
    def test_supported_pairs(self, os_name, arch, expected):
        assert PlatformInfo(os_name, arch).target_triple() == expected

    @pytest.mark.parametrize("arch", ["x86", "arm", "riscv64"])
    def test_unsupported_architecture(self, arch):
        with pytest.raises(UnsupportedPlatformError, match="architecture"):
            PlatformInfo("linux", arch).target_triple()

    def test_unsupported_os(self):
        with pytest.raises(UnsupportedPlatformError, match="operating system"):
            PlatformInfo("freebsd", "x64").target_triple()


class TestPlatformInfo:
    """Test PlatformInfo helpers."""

    def test_archive_extension(self):
        assert PlatformInfo("windows", "x64").archive_extension() == "zip"
        assert PlatformInfo("linux", "x64").archive_extension() == "tar.gz"
        assert PlatformInfo("macos", "arm64").archive_extension() == "tar.gz"

    @pytest.mark.parametrize(
        "os_name,arch,expected",
        [
            ("windows", "x64", "win-x64"),
            ("linux", "arm64", "linux-arm64"),
            ("macos", "arm64", "osx-arm64"),
        ],
    )
    def test_runtime_identifier(self, os_name, arch, expected):
        assert PlatformInfo(os_name, arch).runtime_identifier() == expected

    def test_runtime_identifier_unsupported(self):
        with pytest.raises(UnsupportedPlatformError):
            PlatformInfo("linux", "x86").runtime_identifier()

    def test_executable_name(self):
        assert PlatformInfo("windows", "x64").executable_name("srv") == "srv.exe"
        assert PlatformInfo("linux", "x64").executable_name("srv") == "srv"

    def test_str(self):
        assert str(PlatformInfo("macos", "arm64")) == "macos-arm64"


class TestDetectPlatform:
    """Test host detection."""

    def setup_method(self):
        clear_platform_cache()

    def teardown_method(self):
        clear_platform_cache()

    @pytest.mark.parametrize(
        "system,machine,expected",
        [
            ("Linux", "x86_64", PlatformInfo("linux", "x64")),
            ("Darwin", "arm64", PlatformInfo("macos", "arm64")),
            ("Windows", "AMD64", PlatformInfo("windows", "x64")),
            ("Linux", "aarch64", PlatformInfo("linux", "arm64")),
            ("Linux", "i686", PlatformInfo("linux", "x86")),
        ],
    )
    def test_detection(self, system, machine, expected):
        with patch("platform.system", return_value=system), patch(
            "platform.machine", return_value=machine
        ):
            assert detect_platform() == expected

    def test_detection_is_cached(self):
        with patch("platform.system", return_value="Linux") as system, patch(
            "platform.machine", return_value="x86_64"
        ):
            detect_platform()
            detect_platform()
        assert system.call_count == 1
