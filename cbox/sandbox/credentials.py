"""Host credentials and environment passthrough.

Collects what the container may see from the host: the explicit ``-e``
variables, a GitHub token, and read-only copies of a few credential
files. Nothing from the host environment is passed implicitly.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from cbox.exceptions import ValidationError
from cbox.sandbox.launch import EnvSource, EnvVarSpec, MountKind, MountSpec
from cbox.sandbox.paths import validate_path
from cbox.sandbox.tokens import TokenExtractor, discover_github_token, fingerprint
from cbox.sandbox.validation import validate_env_var_name

logger = logging.getLogger(__name__)

CONTAINER_HOME = "/home/claude"

# Host file (relative to $HOME) -> container path; always mounted read-only
CREDENTIAL_FILES: dict[str, str] = {
    ".claude.json": f"{CONTAINER_HOME}/.claude.json",
    ".gitconfig": f"{CONTAINER_HOME}/.gitconfig",
    ".git-credentials": f"{CONTAINER_HOME}/.git-credentials",
    ".ssh/known_hosts": f"{CONTAINER_HOME}/.ssh/known_hosts",
}

GITHUB_TOKEN_TARGET = "GH_TOKEN"


def parse_env_flags(
    flags: Iterable[str],
    environment: Mapping[str, str],
) -> list[EnvVarSpec]:
    """Turn ``-e`` flag values into EnvVarSpecs.

    ``NAME`` looks the value up in the host environment and is skipped
    when unset or empty. ``NAME=value`` passes value literally; only the
    first ``=`` separates name from value.

    Raises:
        InvalidEnvVarNameError: If a name is not a valid identifier
    """
    specs: list[EnvVarSpec] = []
    for flag in flags:
        if "=" in flag:
            name, value = flag.split("=", 1)
            specs.append(
                EnvVarSpec(
                    name=validate_env_var_name(name),
                    source=EnvSource.LITERAL,
                    value=value,
                )
            )
            continue

        name = validate_env_var_name(flag)
        value = environment.get(name, "")
        if not value:
            logger.debug("Skipping -e %s: not set in host environment", name)
            continue
        specs.append(EnvVarSpec(name=name, source=EnvSource.HOST_LOOKUP, value=value))

    return specs


def github_token_env(
    environment: Mapping[str, str],
    *,
    extractor: TokenExtractor | None = None,
) -> EnvVarSpec | None:
    """Build the GH_TOKEN variable from the first available GitHub token.

    Raises:
        InvalidTokenFormatError: If the token found is malformed
    """
    found = discover_github_token(environment, extractor=extractor)
    if found is None:
        return None
    source, token = found
    logger.debug("Forwarding GitHub token from %s (sha256:%s)", source, fingerprint(token))
    return EnvVarSpec(name=GITHUB_TOKEN_TARGET, source=EnvSource.LITERAL, value=token)


def credential_mounts(home: Path) -> list[MountSpec]:
    """Read-only mounts for credential files that exist under home.

    Missing or rejected files are skipped.
    """
    mounts: list[MountSpec] = []
    for relative, container_path in CREDENTIAL_FILES.items():
        host_file = home / relative
        try:
            validated = validate_path(host_file)
        except ValidationError as e:
            logger.debug("Skipping credential file %s: %s", relative, e)
            continue
        if not validated.canonical.is_file():
            continue
        mounts.append(MountSpec.from_validated(validated, container_path, MountKind.READ_ONLY))
    return mounts


__all__ = [
    "CONTAINER_HOME",
    "CREDENTIAL_FILES",
    "credential_mounts",
    "github_token_env",
    "parse_env_flags",
]
