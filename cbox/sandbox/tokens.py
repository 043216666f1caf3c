"""GitHub token validation and discovery.

Tokens are never logged or echoed; diagnostics use a truncated SHA-256
fingerprint instead.
"""

from __future__ import annotations

import hashlib
import logging
import re
import shutil
import subprocess
from collections.abc import Callable, Mapping

from cbox.exceptions import InvalidTokenFormatError
from cbox.settings import GITHUB_TOKEN_VARS

logger = logging.getLogger(__name__)

TOKEN_PATTERN: re.Pattern[str] = re.compile(
    r"gh[ps]_[A-Za-z0-9]{36,255}|github_pat_[A-Za-z0-9_]{82,255}"
)

FINGERPRINT_LENGTH = 12

TokenExtractor = Callable[[], str | None]


def fingerprint(secret: str) -> str:
    """First 12 hex characters of the SHA-256 digest, for log correlation."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def validate_token(raw: str, token_kind: str = "GitHub token") -> str:
    """Validate a GitHub bearer token's format.

    Args:
        raw: Token string
        token_kind: Label used in the error (e.g. the source variable name)

    Returns:
        The token, unchanged

    Raises:
        InvalidTokenFormatError: If the token does not match a known shape
    """
    if not TOKEN_PATTERN.fullmatch(raw):
        raise InvalidTokenFormatError(token_kind)
    logger.debug("Accepted %s (sha256:%s)", token_kind, fingerprint(raw))
    return raw


def extract_gh_cli_token(timeout: float = 5.0, gh_path: str = "gh") -> str | None:
    """Ask the GitHub CLI for its stored token.

    Never blocks longer than ``timeout``; any failure yields None.
    """
    executable = shutil.which(gh_path)
    if executable is None:
        return None

    try:
        completed = subprocess.run(  # noqa: S603
            [executable, "auth", "token"],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logger.warning("Timed out after %ss waiting for 'gh auth token'", timeout)
        return None
    except OSError as e:
        logger.debug("Failed to run 'gh auth token': %s", e)
        return None

    if completed.returncode != 0:
        return None
    token = completed.stdout.strip()
    return token or None


def discover_github_token(
    environment: Mapping[str, str],
    *,
    extractor: TokenExtractor | None = None,
) -> tuple[str, str] | None:
    """Find and validate a GitHub token.

    Checks GH_TOKEN then GITHUB_TOKEN (first non-empty wins), then the
    optional extractor.

    Returns:
        (source, token) or None when no token is available

    Raises:
        InvalidTokenFormatError: If the found token is malformed
    """
    for name in GITHUB_TOKEN_VARS:
        value = environment.get(name, "")
        if value:
            return name, validate_token(value, name)

    if extractor is not None:
        token = extractor()
        if token:
            return "gh auth token", validate_token(token, "gh auth token")

    return None


__all__ = [
    "TOKEN_PATTERN",
    "discover_github_token",
    "extract_gh_cli_token",
    "fingerprint",
    "validate_token",
]
