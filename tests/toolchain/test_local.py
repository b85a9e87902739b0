"""
Tests for detection of user-installed servers.
"""

import sys

import pytest

from roslynkit.toolchain.local import find_user_installed


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX executables")
def test_found_on_search_path(tmp_path):
    binary = tmp_path / "csharp-language-server"
    binary.write_text("#!/bin/sh\n")
    binary.chmod(0o755)

    result = find_user_installed("csharp-language-server", search_path=str(tmp_path))

    assert result.path == binary
    assert result.arguments == ()
    assert result.env is None


def test_absent_is_none(tmp_path):
    assert find_user_installed("csharp-language-server", search_path=str(tmp_path)) is None


def test_uses_process_path(tmp_path, monkeypatch):
    monkeypatch.setenv("PATH", str(tmp_path))
    assert find_user_installed("csharp-language-server") is None
