"""
Pytest configuration and shared fixtures for roslynkit tests.
"""

import io
import subprocess
import tarfile
import zipfile
from pathlib import Path
from typing import Callable, Dict

import pytest

from roslynkit.core.platform import PlatformInfo


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if config.getoption("--integration"):
        return
    skip_integration = pytest.mark.skip(reason="need --integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )
    config.addinivalue_line("markers", "unit: marks tests as fast unit tests")


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def linux_x64() -> PlatformInfo:
    return PlatformInfo(os="linux", arch="x64")


@pytest.fixture
def windows_x64() -> PlatformInfo:
    return PlatformInfo(os="windows", arch="x64")


@pytest.fixture
def container(tmp_path: Path) -> Path:
    """Empty per-server container directory."""
    path = tmp_path / "languages" / "roslyn"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def make_tar_gz() -> Callable[[Dict[str, bytes]], bytes]:
    """Build an in-memory .tar.gz from a {member_path: content} mapping."""

    def build(files: Dict[str, bytes]) -> bytes:
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
            for name, content in files.items():
                info = tarfile.TarInfo(name)
                info.size = len(content)
                info.mode = 0o755
                tar.addfile(info, io.BytesIO(content))
        return buffer.getvalue()

    return build


@pytest.fixture
def make_zip() -> Callable[[Dict[str, bytes]], bytes]:
    """Build an in-memory .zip from a {member_path: content} mapping."""

    def build(files: Dict[str, bytes]) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            for name, content in files.items():
                zf.writestr(name, content)
        return buffer.getvalue()

    return build


@pytest.fixture
def completed() -> Callable[..., subprocess.CompletedProcess]:
    """Factory for fake subprocess results."""

    def build(returncode: int = 0, stdout: str = "", stderr: str = ""):
        return subprocess.CompletedProcess(
            args=[], returncode=returncode, stdout=stdout, stderr=stderr
        )

    return build


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Create isolated home directory for tests."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()

    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setenv("USERPROFILE", str(fake_home))

    return fake_home
