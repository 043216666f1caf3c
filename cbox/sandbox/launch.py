"""Launch-plan builder.

Translates a ResolvedPolicy plus validated mounts and environment
variables into the ordered argument vector handed to the container
runtime. The builder does no input validation: anything that is not
already a validated type is a programming error and raises
ContractViolation.

Argument order:
    network, capabilities, security options, resource limits, tmpfs,
    volumes, environment
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from cbox.exceptions import CboxError, ContractViolation
from cbox.sandbox.paths import ValidatedPath, validate_path
from cbox.sandbox.policies import (
    NetworkMode,
    PolicyWarning,
    ResolvedPolicy,
    ResourceLimits,
    WarningKind,
)
from cbox.sandbox.tokens import fingerprint
from cbox.sandbox.validation import ENV_NAME_RE
from cbox.settings import SSH_AUTH_SOCK_VAR

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

CONTAINER_WORKDIR = "/work"
CONTAINER_SSH_SOCKET = "/ssh-agent"

DNS_SERVERS: tuple[str, ...] = ("8.8.8.8", "1.1.1.1")

# Applied in every mode
ADDED_CAPABILITIES: tuple[str, ...] = ("CHOWN", "DAC_OVERRIDE", "FOWNER", "SETUID", "SETGID")
SECURITY_OPTIONS: tuple[str, ...] = ("--security-opt=no-new-privileges",)
TMPFS_MOUNTS: tuple[str, ...] = (
    "/tmp:rw,noexec,nosuid,size=1g",  # nosec B108
    "/run:rw,noexec,nosuid,size=64m",
)

REDACTED = "***"


class MountKind(StrEnum):
    """Volume mount modes."""

    READ_ONLY = "ro"
    READ_WRITE = "rw"
    SOCKET = "socket"


class EnvSource(StrEnum):
    """Where an environment variable's value came from."""

    HOST_LOOKUP = "host"
    LITERAL = "literal"


# =============================================================================
# MODELS
# =============================================================================


class MountSpec(BaseModel):
    """Volume mount built from a validated host path."""

    model_config = ConfigDict(frozen=True)

    host_path: Path = Field(..., description="Canonical host path")
    container_path: str = Field(..., description="Path inside the container")
    mode: MountKind = Field(default=MountKind.READ_ONLY, description="Mount mode")

    @classmethod
    def from_validated(
        cls,
        path: ValidatedPath,
        container_path: str,
        mode: MountKind = MountKind.READ_ONLY,
    ) -> MountSpec:
        if not isinstance(path, ValidatedPath):
            raise ContractViolation(f"MountSpec requires a ValidatedPath, got {type(path).__name__}")
        return cls(host_path=path.canonical, container_path=container_path, mode=mode)

    def to_volume_arg(self) -> str:
        if self.mode is MountKind.READ_ONLY:
            return f"{self.host_path}:{self.container_path}:ro"
        return f"{self.host_path}:{self.container_path}"


class EnvVarSpec(BaseModel):
    """Environment variable passed to the container as ``NAME=value``."""

    model_config = ConfigDict(frozen=True)

    name: str
    source: EnvSource
    value: str = Field(..., repr=False)

    def to_env_arg(self) -> str:
        return f"{self.name}={self.value}"


class LaunchPlan(BaseModel):
    """Ordered runtime arguments for one invocation. Immutable."""

    model_config = ConfigDict(frozen=True)

    args: tuple[str, ...]
    policy: ResolvedPolicy
    mounts: tuple[MountSpec, ...] = ()
    env: tuple[EnvVarSpec, ...] = ()
    warnings: tuple[PolicyWarning, ...] = ()

    def redacted_args(self) -> list[str]:
        """Arguments with every environment value masked, for display."""
        shown: list[str] = []
        previous = ""
        for arg in self.args:
            if previous == "-e":
                name = arg.split("=", 1)[0]
                shown.append(f"{name}={REDACTED}")
            else:
                shown.append(arg)
            previous = arg
        return shown


# =============================================================================
# BUILDER
# =============================================================================


def find_ssh_agent_socket(environment: Mapping[str, str]) -> ValidatedPath | None:
    """Locate and validate the host SSH agent socket.

    Returns None when SSH_AUTH_SOCK is unset, empty or rejected.
    """
    raw = environment.get(SSH_AUTH_SOCK_VAR, "")
    if not raw:
        return None
    try:
        return validate_path(raw)
    except CboxError as e:
        logger.warning("Ignoring %s: %s", SSH_AUTH_SOCK_VAR, e)
        return None


def _network_args(network: NetworkMode) -> list[str]:
    args = ["--network", network.value]
    if network is NetworkMode.BRIDGE:
        for server in DNS_SERVERS:
            args.extend(["--dns", server])
    return args


def _check_contract(
    policy: object,
    workdir: object,
    requested_mounts: Sequence[object],
    requested_env: Sequence[object],
    limits: object,
) -> None:
    if not isinstance(policy, ResolvedPolicy):
        raise ContractViolation(f"Expected ResolvedPolicy, got {type(policy).__name__}")
    if not isinstance(workdir, ValidatedPath):
        raise ContractViolation(f"Expected ValidatedPath workdir, got {type(workdir).__name__}")
    if not isinstance(limits, ResourceLimits):
        raise ContractViolation(f"Expected ResourceLimits, got {type(limits).__name__}")
    for mount in requested_mounts:
        if not isinstance(mount, MountSpec):
            raise ContractViolation(f"Expected MountSpec, got {type(mount).__name__}")
    for spec in requested_env:
        if not isinstance(spec, EnvVarSpec):
            raise ContractViolation(f"Expected EnvVarSpec, got {type(spec).__name__}")
        if not ENV_NAME_RE.fullmatch(spec.name):
            raise ContractViolation(f"Unvalidated environment variable name: {spec.name!r}")


def build_launch_plan(
    policy: ResolvedPolicy,
    workdir: ValidatedPath,
    requested_mounts: Sequence[MountSpec] = (),
    requested_env: Sequence[EnvVarSpec] = (),
    *,
    limits: ResourceLimits | None = None,
    ssh_agent_socket: ValidatedPath | None = None,
) -> LaunchPlan:
    """Build the runtime argument vector.

    Args:
        policy: Output of resolve_policy()
        workdir: Validated working directory, mounted at /work
        requested_mounts: Additional validated mounts
        requested_env: Environment variables, each passed as one argv element
        limits: Validated resource limits (defaults: 4g memory, 2 CPUs)
        ssh_agent_socket: Validated host agent socket, if one was found

    Returns:
        LaunchPlan

    Raises:
        ContractViolation: If any argument is not a validated type
    """
    limits = limits or ResourceLimits()
    _check_contract(policy, workdir, requested_mounts, requested_env, limits)

    warnings = list(policy.warnings)
    args: list[str] = []

    # Network
    args.extend(_network_args(policy.network))

    # Capability baseline
    args.append("--cap-drop=ALL")
    args.extend(f"--cap-add={cap}" for cap in ADDED_CAPABILITIES)

    # Security options
    args.extend(SECURITY_OPTIONS)

    # Resource limits
    args.extend(["--memory", limits.memory, "--cpus", limits.cpus])

    # Temp filesystems
    for tmpfs in TMPFS_MOUNTS:
        args.extend(["--tmpfs", tmpfs])

    # Volumes
    workdir_mode = MountKind.READ_ONLY if policy.read_only else MountKind.READ_WRITE
    mounts = [MountSpec.from_validated(workdir, CONTAINER_WORKDIR, workdir_mode)]
    mounts.extend(requested_mounts)

    env = list(requested_env)

    if policy.ssh_agent:
        if ssh_agent_socket is not None:
            mounts.append(
                MountSpec.from_validated(ssh_agent_socket, CONTAINER_SSH_SOCKET, MountKind.SOCKET)
            )
            env.append(
                EnvVarSpec(
                    name=SSH_AUTH_SOCK_VAR,
                    source=EnvSource.LITERAL,
                    value=CONTAINER_SSH_SOCKET,
                )
            )
        else:
            warnings.append(
                PolicyWarning(
                    kind=WarningKind.ADVISORY,
                    message="SSH agent requested but no agent socket is available",
                    detail=f"Set {SSH_AUTH_SOCK_VAR} to forward your SSH agent",
                )
            )

    for mount in mounts:
        args.extend(["-v", mount.to_volume_arg()])

    # Environment: one discrete argv element per variable, never re-split
    for spec in env:
        args.extend(["-e", spec.to_env_arg()])
        if spec.source is EnvSource.LITERAL:
            logger.debug(
                "Passing %s (literal, %d chars, sha256:%s)",
                spec.name,
                len(spec.value),
                fingerprint(spec.value),
            )
        else:
            logger.debug("Passing %s (from host environment)", spec.name)

    return LaunchPlan(
        args=tuple(args),
        policy=policy,
        mounts=tuple(mounts),
        env=tuple(env),
        warnings=tuple(warnings),
    )


__all__ = [
    "ADDED_CAPABILITIES",
    "CONTAINER_SSH_SOCKET",
    "CONTAINER_WORKDIR",
    "DNS_SERVERS",
    "EnvSource",
    "EnvVarSpec",
    "LaunchPlan",
    "MountKind",
    "MountSpec",
    "build_launch_plan",
    "find_ssh_agent_socket",
]
