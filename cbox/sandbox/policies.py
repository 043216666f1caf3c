"""Security modes and policy resolution.

Defines the three security modes, the policy dimensions each one sets,
and the resolver that turns a mode plus explicit overrides into a
ResolvedPolicy:

    A. defaults     - look up the mode's preset
    B. overrides    - any explicit value replaces the preset, always
    C. consistency  - non-fatal warnings for weakened or unusable combos
    D. bypass check - fatal if a bypass-signal variable is present

Resolution runs once per invocation and is a pure function of its
arguments; the environment is passed in as a snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field

from cbox.exceptions import SecurityBypassDetected
from cbox.settings import BYPASS_SIGNAL_VARS

logger = logging.getLogger(__name__)


class SecurityMode(StrEnum):
    """Security presets from least to most restrictive."""

    STANDARD = "standard"  # Host network, SSH agent, writable workdir
    RESTRICTED = "restricted"  # Bridge network with fixed DNS
    PARANOID = "paranoid"  # No network, no SSH agent, read-only workdir


class NetworkMode(StrEnum):
    """Container network modes."""

    HOST = "host"
    BRIDGE = "bridge"
    NONE = "none"


class FilesystemMode(StrEnum):
    """Workdir mount writability."""

    READ_WRITE = "rw"
    READ_ONLY = "ro"


class WarningKind(StrEnum):
    """Category of a non-fatal policy warning."""

    SECURITY = "Security"
    CONFIGURATION = "Configuration"
    ADVISORY = "Advisory"


# =============================================================================
# MODELS
# =============================================================================


class PolicyDefaults(BaseModel):
    """Values a security mode assigns to each policy dimension."""

    model_config = ConfigDict(frozen=True)

    network: NetworkMode
    ssh_agent: bool
    filesystem: FilesystemMode


class OverrideSet(BaseModel):
    """Explicit per-dimension values from the caller.

    ``None`` means "use the mode default".
    """

    model_config = ConfigDict(frozen=True)

    network: NetworkMode | None = Field(default=None, description="--network")
    ssh_agent: bool | None = Field(default=None, description="--ssh-agent")
    filesystem: FilesystemMode | None = Field(default=None, description="--read-only")


class ResourceLimits(BaseModel):
    """Validated container resource limits, kept as runtime-ready strings."""

    model_config = ConfigDict(frozen=True)

    memory: str = Field(default="4g", description="Memory limit (e.g. 512m, 4g)")
    cpus: str = Field(default="2", description="CPU limit (e.g. 1, 1.5)")


class PolicyWarning(BaseModel):
    """Non-fatal finding produced during resolution or plan building."""

    model_config = ConfigDict(frozen=True)

    kind: WarningKind
    message: str
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value} Warning: {self.message}"


class ResolvedPolicy(BaseModel):
    """Concrete policy for one invocation.

    Produced by resolve_policy() and consumed once by the launch-plan builder.
    """

    model_config = ConfigDict(frozen=True)

    mode: SecurityMode
    network: NetworkMode
    ssh_agent: bool
    filesystem: FilesystemMode
    warnings: tuple[PolicyWarning, ...] = ()

    @property
    def read_only(self) -> bool:
        return self.filesystem is FilesystemMode.READ_ONLY


# =============================================================================
# MODE DEFAULTS
# =============================================================================


MODE_DEFAULTS: Mapping[SecurityMode, PolicyDefaults] = MappingProxyType(
    {
        SecurityMode.STANDARD: PolicyDefaults(
            network=NetworkMode.HOST,
            ssh_agent=True,
            filesystem=FilesystemMode.READ_WRITE,
        ),
        SecurityMode.RESTRICTED: PolicyDefaults(
            network=NetworkMode.BRIDGE,
            ssh_agent=True,
            filesystem=FilesystemMode.READ_WRITE,
        ),
        SecurityMode.PARANOID: PolicyDefaults(
            network=NetworkMode.NONE,
            ssh_agent=False,
            filesystem=FilesystemMode.READ_ONLY,
        ),
    }
)

if set(MODE_DEFAULTS) != set(SecurityMode):
    raise RuntimeError("MODE_DEFAULTS must cover every SecurityMode")


def get_mode_defaults(mode: SecurityMode) -> PolicyDefaults:
    """Get the preset for a security mode.

    Raises:
        ValueError: If mode is not a SecurityMode member
    """
    try:
        return MODE_DEFAULTS[SecurityMode(mode)]
    except (KeyError, ValueError) as e:
        available = ", ".join(m.value for m in SecurityMode)
        msg = f"Unknown security mode '{mode}'. Available: {available}"
        raise ValueError(msg) from e


# =============================================================================
# RESOLUTION
# =============================================================================


def _consistency_warnings(
    mode: SecurityMode,
    network: NetworkMode,
    ssh_agent: bool,
    filesystem: FilesystemMode,
) -> list[PolicyWarning]:
    warnings: list[PolicyWarning] = []

    if mode is SecurityMode.PARANOID:
        if network is not NetworkMode.NONE:
            warnings.append(
                PolicyWarning(
                    kind=WarningKind.SECURITY,
                    message=f"Network enabled in paranoid mode (expected: none, got: {network})",
                    detail="This reduces the isolation benefits of paranoid mode",
                )
            )
        if ssh_agent:
            warnings.append(
                PolicyWarning(
                    kind=WarningKind.SECURITY,
                    message="SSH agent enabled in paranoid mode",
                    detail="This exposes SSH keys to the container, reducing security",
                )
            )
        if filesystem is not FilesystemMode.READ_ONLY:
            warnings.append(
                PolicyWarning(
                    kind=WarningKind.SECURITY,
                    message="Write access enabled in paranoid mode",
                    detail="Container can modify your project files",
                )
            )

    if (
        network is NetworkMode.HOST
        and filesystem is FilesystemMode.READ_WRITE
        and mode is not SecurityMode.STANDARD
    ):
        warnings.append(
            PolicyWarning(
                kind=WarningKind.SECURITY,
                message="Host network with write access",
                detail="Container has full network access and can modify files. "
                "Consider using --read-only or restricted mode",
            )
        )

    if ssh_agent and network is NetworkMode.NONE:
        warnings.append(
            PolicyWarning(
                kind=WarningKind.CONFIGURATION,
                message="SSH agent enabled but network disabled",
                detail="SSH operations will fail without network access. "
                "Consider --ssh-agent false or enabling network",
            )
        )

    return warnings


def detect_bypass(environment: Mapping[str, str]) -> list[str]:
    """Return the bypass-signal variables present in an environment snapshot."""
    return sorted(name for name in BYPASS_SIGNAL_VARS if name in environment)


def resolve_policy(
    mode: SecurityMode,
    overrides: OverrideSet | None = None,
    *,
    environment: Mapping[str, str],
) -> ResolvedPolicy:
    """Resolve a security mode and overrides into a concrete policy.

    Args:
        mode: Validated security mode
        overrides: Explicit per-dimension values (None fields keep defaults)
        environment: Snapshot of the process environment

    Returns:
        ResolvedPolicy with any consistency warnings attached

    Raises:
        SecurityBypassDetected: If a bypass-signal variable is present
    """
    overrides = overrides or OverrideSet()

    # Phase A: defaults
    defaults = get_mode_defaults(mode)

    # Phase B: overrides always win
    network = overrides.network if overrides.network is not None else defaults.network
    ssh_agent = overrides.ssh_agent if overrides.ssh_agent is not None else defaults.ssh_agent
    filesystem = (
        overrides.filesystem if overrides.filesystem is not None else defaults.filesystem
    )

    # Phase C: consistency warnings
    warnings = _consistency_warnings(mode, network, ssh_agent, filesystem)

    # Phase D: bypass detection
    found = detect_bypass(environment)
    if found:
        logger.error("Security bypass variables present: %s", ", ".join(found))
        raise SecurityBypassDetected(found)

    policy = ResolvedPolicy(
        mode=mode,
        network=network,
        ssh_agent=ssh_agent,
        filesystem=filesystem,
        warnings=tuple(warnings),
    )

    logger.debug(
        "Security configuration resolved: Mode: %s, Network: %s, SSH Agent: %s, Read-only: %s",
        policy.mode,
        policy.network,
        "true" if policy.ssh_agent else "false",
        "true" if policy.read_only else "false",
    )
    return policy


__all__ = [
    "MODE_DEFAULTS",
    "FilesystemMode",
    "NetworkMode",
    "OverrideSet",
    "PolicyDefaults",
    "PolicyWarning",
    "ResolvedPolicy",
    "ResourceLimits",
    "SecurityMode",
    "WarningKind",
    "detect_bypass",
    "get_mode_defaults",
    "resolve_policy",
]
