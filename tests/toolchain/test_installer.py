"""
Tests for the archive-based installer.
"""

import hashlib
import json

import pytest
import responses
from unittest.mock import patch

from roslynkit.core.exceptions import (
    BinaryNotFoundError,
    DigestMismatchError,
    DownloadError,
)
from roslynkit.core.platform import PlatformInfo
from roslynkit.toolchain.cache import CacheStore
from roslynkit.toolchain.installer import BinaryInstaller, asset_kind
from roslynkit.toolchain.resolver import ToolchainVersion

BINARY = "csharp-language-server"
LINUX_URL = "https://github.com/dl/csharp-language-server-x86_64-unknown-linux-gnu.tar.gz"
WINDOWS_URL = "https://github.com/dl/csharp-language-server-x86_64-pc-windows-msvc.zip"


@pytest.fixture
def spawned():
    return []


@pytest.fixture
def installer(linux_x64, spawned):
    return BinaryInstaller(platform=linux_x64, spawn=spawned.append)


@pytest.fixture
def archive(make_tar_gz):
    return make_tar_gz({"release/bin/csharp-language-server": b"#!/bin/sh\necho 1.0\n"})


def _digest(data: bytes) -> str:
    return "sha256:" + hashlib.sha256(data).hexdigest()


def _seed(container, version, digest):
    version_dir = container / f"roslyn-{version}"
    version_dir.mkdir()
    (version_dir / BINARY).write_text("old")
    (version_dir / "metadata").write_text(
        json.dumps({"metadata_version": 1, "digest": digest})
    )
    return version_dir


def test_asset_kind():
    assert asset_kind(WINDOWS_URL) == "zip"
    assert asset_kind(LINUX_URL) == "tar.gz"


class TestAcquire:
    @responses.activate
    def test_fresh_install(self, installer, container, archive, spawned):
        responses.add(responses.GET, LINUX_URL, body=archive)
        version = ToolchainVersion("0.2.0", LINUX_URL, _digest(archive))

        binary = installer.acquire(version, container)

        assert binary.path == container / "roslyn-0.2.0" / BINARY
        assert binary.arguments == ()
        assert binary.path.read_bytes() == b"#!/bin/sh\necho 1.0\n"
        record = json.loads((container / "roslyn-0.2.0" / "metadata").read_text())
        assert record == {"metadata_version": 1, "digest": _digest(archive)}
        assert len(spawned) == 1

    @responses.activate
    def test_only_one_version_remains(self, installer, container, archive):
        _seed(container, "0.1.0", "sha256:old")
        responses.add(responses.GET, LINUX_URL, body=archive)

        installer.acquire(ToolchainVersion("0.2.0", LINUX_URL), container)

        assert [p.name for p in container.iterdir()] == ["roslyn-0.2.0"]

    @responses.activate
    def test_cache_hit_skips_download(self, installer, container, spawned):
        _seed(container, "0.2.0", "sha256:" + "ab" * 32)
        version = ToolchainVersion("0.2.0", LINUX_URL, "sha256:" + "ab" * 32)

        with patch.object(CacheStore, "_is_alive", return_value=True):
            binary = installer.acquire(version, container)

        assert binary.path == container / "roslyn-0.2.0" / BINARY
        assert len(responses.calls) == 0
        assert spawned == []

    @responses.activate
    def test_repeated_acquire_is_idempotent(self, installer, container, archive):
        responses.add(responses.GET, LINUX_URL, body=archive)
        version = ToolchainVersion("0.2.0", LINUX_URL, _digest(archive))

        with patch.object(CacheStore, "_is_alive", return_value=True):
            first = installer.acquire(version, container)
            second = installer.acquire(version, container)

        assert first == second
        assert len(responses.calls) == 1

    @responses.activate
    def test_digest_mismatch_redownloads(self, installer, container, archive):
        _seed(container, "0.2.0", "sha256:" + "00" * 32)
        responses.add(responses.GET, LINUX_URL, body=archive)
        version = ToolchainVersion("0.2.0", LINUX_URL, _digest(archive))

        with patch.object(CacheStore, "_is_alive", return_value=True):
            binary = installer.acquire(version, container)

        assert len(responses.calls) == 1
        assert binary.path.read_bytes() != b"old"
        record = json.loads((container / "roslyn-0.2.0" / "metadata").read_text())
        assert record["digest"] == _digest(archive)

    @responses.activate
    def test_dead_cached_binary_redownloads(self, installer, container, archive):
        _seed(container, "0.2.0", None)
        responses.add(responses.GET, LINUX_URL, body=archive)

        with patch.object(CacheStore, "_is_alive", return_value=False):
            installer.acquire(ToolchainVersion("0.2.0", LINUX_URL), container)

        assert len(responses.calls) == 1

    @responses.activate
    def test_corrupted_transfer(self, installer, container, archive):
        responses.add(responses.GET, LINUX_URL, body=archive)
        version = ToolchainVersion("0.2.0", LINUX_URL, "sha256:" + "00" * 32)

        with pytest.raises(DigestMismatchError):
            installer.acquire(version, container)

        assert list(container.iterdir()) == []

    @responses.activate
    def test_binary_missing_from_archive(self, installer, container, make_tar_gz):
        responses.add(
            responses.GET, LINUX_URL, body=make_tar_gz({"release/README": b"hi"})
        )

        with pytest.raises(BinaryNotFoundError):
            installer.acquire(ToolchainVersion("0.2.0", LINUX_URL), container)

        assert not (container / "roslyn-0.2.0-tmp").exists()
        assert not (container / "roslyn-0.2.0").exists()

    def test_no_url(self, installer, container):
        with pytest.raises(DownloadError, match="No download URL"):
            installer.acquire(ToolchainVersion("0.2.0"), container)

    @responses.activate
    def test_unsupported_digest_algorithm(self, installer, container):
        version = ToolchainVersion("0.2.0", LINUX_URL, "sha1:abcd")

        with pytest.raises(DownloadError, match="Unsupported digest algorithm 'sha1'"):
            installer.acquire(version, container)

        assert len(responses.calls) == 0
        assert list(container.iterdir()) == []

    @responses.activate
    def test_windows_zip(self, container, make_zip, spawned):
        installer = BinaryInstaller(platform=PlatformInfo("windows", "x64"), spawn=spawned.append)
        responses.add(
            responses.GET,
            WINDOWS_URL,
            body=make_zip({"csharp-language-server.exe": b"MZ"}),
        )

        binary = installer.acquire(ToolchainVersion("0.2.0", WINDOWS_URL), container)

        assert binary.path == container / "roslyn-0.2.0" / "csharp-language-server.exe"

    @responses.activate
    def test_warm_up_disabled(self, linux_x64, container, archive, spawned):
        installer = BinaryInstaller(platform=linux_x64, warmup_args=None, spawn=spawned.append)
        responses.add(responses.GET, LINUX_URL, body=archive)

        installer.acquire(ToolchainVersion("0.2.0", LINUX_URL), container)

        assert spawned == []

    @responses.activate
    def test_warm_up_runs_download(self, installer, container, archive, spawned):
        responses.add(responses.GET, LINUX_URL, body=archive)
        binary = installer.acquire(ToolchainVersion("0.2.0", LINUX_URL), container)

        with patch("roslynkit.toolchain.installer.warm_up") as warm_up:
            spawned[0]()

        warm_up.assert_called_once_with(binary.path, ("--download",))


def test_cached_binary(installer, container):
    assert installer.cached_binary(container) is None
    _seed(container, "0.1.0", None)

    assert installer.cached_binary(container).path == container / "roslyn-0.1.0" / BINARY
