"""Unit tests for cbox/sandbox/paths.py.

Most tests inject an identity canonicalizer so results do not depend on
the host's symlink layout.
"""

import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from cbox.exceptions import (
    DangerousPathCharactersError,
    NullByteInPathError,
    SystemDirectoryDeniedError,
)
from cbox.sandbox.paths import (
    SYSTEM_DIRECTORIES,
    ValidatedPath,
    contains_dangerous_characters,
    contains_null_byte,
    is_system_directory,
    validate_path,
)


def _identity(path: str) -> str:
    return path


class TestMetacharacters:
    @pytest.mark.parametrize(
        "path",
        [
            "/home/u/a;b",
            "/home/u/a|b",
            "/home/u/a&b",
            "/home/u/a>b",
            "/home/u/a<b",
            "/home/u/$(id)",
            "/home/u/${HOME}",
            "/home/u/`id`",
        ],
    )
    def test_rejected_before_filesystem_access(self, path):
        """The canonicalizer must never see a path with shell syntax."""
        spy = MagicMock(side_effect=_identity)

        with pytest.raises(DangerousPathCharactersError) as exc_info:
            validate_path(path, canonicalize=spy)

        spy.assert_not_called()
        assert exc_info.value.path == path

    def test_lone_dollar_is_allowed(self):
        validated = validate_path("/home/u/cost$5", canonicalize=_identity)
        assert validated.canonical == Path("/home/u/cost$5")

    def test_metacharacters_win_over_null_byte(self):
        with pytest.raises(DangerousPathCharactersError):
            validate_path("/home/u/a;\x00", canonicalize=_identity)

    def test_helper(self):
        assert contains_dangerous_characters("a && b")
        assert not contains_dangerous_characters("/home/u/project")


class TestNullBytes:
    def test_rejected_before_filesystem_access(self):
        spy = MagicMock(side_effect=_identity)

        with pytest.raises(NullByteInPathError):
            validate_path("/home/u/project\x00/etc", canonicalize=spy)

        spy.assert_not_called()

    def test_helper(self):
        assert contains_null_byte("a\x00b")
        assert not contains_null_byte("ab")


class TestUnencodablePaths:
    @pytest.mark.parametrize("path", ["/home/u/\ud800", "/home/u/a\udbffb"])
    def test_lone_surrogate_rejected_before_filesystem_access(self, path):
        spy = MagicMock(side_effect=_identity)

        with pytest.raises(DangerousPathCharactersError) as exc_info:
            validate_path(path, canonicalize=spy)

        spy.assert_not_called()
        assert exc_info.value.path == path

    def test_escaped_host_bytes_are_accepted(self):
        """os.fsdecode turns undecodable bytes into U+DC80..U+DCFF."""
        validated = validate_path("/home/u/caf\udce9", canonicalize=_identity)
        assert validated.raw == "/home/u/caf\udce9"


class TestSystemDirectories:
    @pytest.mark.parametrize("root", SYSTEM_DIRECTORIES)
    def test_root_itself_is_denied(self, root):
        with pytest.raises(SystemDirectoryDeniedError):
            validate_path(root, canonicalize=_identity)

    @pytest.mark.parametrize(
        "path",
        ["/etc/passwd", "/usr/bin/env", "/var/log/syslog", "/proc/self/environ", "/root/.ssh"],
    )
    def test_descendants_are_denied(self, path):
        with pytest.raises(SystemDirectoryDeniedError):
            validate_path(path, canonicalize=_identity)

    def test_traversal_is_caught_after_resolution(self):
        with pytest.raises(SystemDirectoryDeniedError) as exc_info:
            validate_path("/home/u/../../etc", canonicalize=_identity)
        assert exc_info.value.path == "/etc"

    def test_relative_traversal_resolves_against_cwd(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        depth = len(Path(os.getcwd()).parts) - 1

        with pytest.raises(SystemDirectoryDeniedError):
            validate_path("../" * depth + "etc", canonicalize=_identity)

    def test_canonical_destination_is_checked(self):
        """A path that resolves into a denied root is rejected."""
        with pytest.raises(SystemDirectoryDeniedError):
            validate_path("/home/u/innocent", canonicalize=lambda p: "/etc/shadow")

    def test_symlink_into_system_directory(self, tmp_path):
        link = tmp_path / "config"
        link.symlink_to("/etc")

        with pytest.raises(SystemDirectoryDeniedError):
            validate_path(str(link))

    @pytest.mark.parametrize("path", ["/etcetera", "/usr/binaries", "/library", "/usr/local/bin"])
    def test_prefix_lookalikes_are_allowed(self, path):
        assert not is_system_directory(path)
        validate_path(path, canonicalize=_identity)


class TestAcceptedPaths:
    @pytest.mark.parametrize("path", ["/home/u/project", "/tmp/work", "/var/tmp/build", "/opt/src"])
    def test_accepts_ordinary_locations(self, path):
        validated = validate_path(path, canonicalize=_identity)
        assert isinstance(validated, ValidatedPath)
        assert validated.raw == path
        assert validated.canonical == Path(path)

    def test_nonexistent_path_is_not_an_error(self, tmp_path):
        missing = tmp_path / "does-not-exist"
        validated = validate_path(missing)
        assert validated.canonical == Path(os.path.realpath(missing))

    def test_relative_path_resolves_against_cwd(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        validated = validate_path("project")
        assert validated.canonical == Path(os.path.realpath(tmp_path)) / "project"

    def test_accepts_pathlike(self, tmp_path):
        validated = validate_path(tmp_path)
        assert validated.canonical == Path(os.path.realpath(tmp_path))

    def test_str_is_canonical_path(self):
        validated = validate_path("/home/u/./project", canonicalize=_identity)
        assert str(validated) == "/home/u/project"
