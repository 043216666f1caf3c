"""Filesystem path security checks.

Validates host paths before they are mounted into the container. Checks
run in a fixed order and the raw-string checks complete before any
filesystem access:

    1. shell metacharacters in the raw string
    2. NUL bytes in the raw string
    3. canonicalisation (os.path.realpath, no shell involved)
    4. system-directory denylist on the resolved destination

Traversal sequences are not rejected by themselves; only where the path
ends up matters.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from cbox.exceptions import (
    DangerousPathCharactersError,
    NullByteInPathError,
    SystemDirectoryDeniedError,
)

logger = logging.getLogger(__name__)

# Single source of truth for the shell metacharacter denylist:
# ; | & > < $( ${ and backtick
DANGEROUS_PATH_PATTERN: re.Pattern[str] = re.compile(r"[;|&><`]|\$\(|\$\{")

SYSTEM_DIRECTORIES: tuple[str, ...] = (
    "/etc",
    "/sys",
    "/proc",
    "/dev",
    "/boot",
    "/root",
    "/bin",
    "/sbin",
    "/lib",
    "/lib64",
    "/usr/bin",
    "/usr/sbin",
    "/usr/lib",
    "/var/log",
    "/var/run",
    "/var/lock",
    "/var/spool",
    "/var/mail",
)

Canonicalizer = Callable[[str], str]


@dataclass(frozen=True, slots=True)
class ValidatedPath:
    """A host path that passed validate_path().

    ``canonical`` is the resolved absolute path; mounts are built from it
    so the raw string is never resolved a second time.
    """

    raw: str
    canonical: Path

    def __str__(self) -> str:
        return str(self.canonical)


def contains_dangerous_characters(path: str) -> bool:
    """True if the path contains a shell metacharacter from the denylist."""
    return DANGEROUS_PATH_PATTERN.search(path) is not None


def contains_null_byte(path: str) -> bool:
    """True if the encoded path contains a NUL byte.

    Raises:
        UnicodeEncodeError: The path holds a lone surrogate that has no
            byte form
    """
    return b"\x00" in path.encode("utf-8", errors="surrogateescape")


def is_system_directory(path: str) -> bool:
    """True if path equals or lies below a denylisted system directory."""
    return any(path == root or path.startswith(root + "/") for root in SYSTEM_DIRECTORIES)


def validate_path(
    path: str | os.PathLike[str],
    *,
    canonicalize: Canonicalizer = os.path.realpath,
) -> ValidatedPath:
    """Validate a host path for mounting.

    Args:
        path: Raw path from the user; relative paths resolve against the
            current working directory
        canonicalize: Symlink-resolving function, injectable for tests

    Returns:
        ValidatedPath carrying the canonical path

    Raises:
        DangerousPathCharactersError: Shell metacharacters in the raw path, or a
            lone surrogate that cannot be encoded
        NullByteInPathError: NUL byte in the raw path
        SystemDirectoryDeniedError: Path resolves into a system directory
    """
    raw = os.fspath(path)

    if contains_dangerous_characters(raw):
        raise DangerousPathCharactersError(raw)

    try:
        has_null = contains_null_byte(raw)
    except UnicodeEncodeError as e:
        raise DangerousPathCharactersError(raw) from e
    if has_null:
        raise NullByteInPathError(raw)

    # Both the lexical and the symlink-resolved destination are checked:
    # /var/run is commonly a symlink to /run, which is not denylisted.
    lexical = os.path.abspath(raw)
    canonical = canonicalize(lexical)

    for candidate in (lexical, canonical):
        if is_system_directory(candidate):
            logger.debug("Rejected system directory %r (resolved: %r)", raw, candidate)
            raise SystemDirectoryDeniedError(candidate)

    return ValidatedPath(raw=raw, canonical=Path(canonical))


__all__ = [
    "DANGEROUS_PATH_PATTERN",
    "SYSTEM_DIRECTORIES",
    "ValidatedPath",
    "contains_dangerous_characters",
    "contains_null_byte",
    "is_system_directory",
    "validate_path",
]
