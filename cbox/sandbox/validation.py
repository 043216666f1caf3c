"""Input validation for CLI flags and configuration values.

Every accepted value comes from a closed enumeration or a narrow numeric
pattern, so it can be appended to the container argv as a discrete
element without escaping. Nothing here touches the filesystem or the
environment.
"""

from __future__ import annotations

import re

from cbox.exceptions import (
    InvalidBooleanError,
    InvalidEnvVarNameError,
    InvalidModeError,
    InvalidNetworkTypeError,
    InvalidResourceLimitError,
)
from cbox.sandbox.policies import NetworkMode, ResourceLimits, SecurityMode

_MEMORY_RE = re.compile(r"[0-9]+[kmgtKMGT]?")
_CPU_RE = re.compile(r"[0-9]+(\.[0-9]+)?")
ENV_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

_BOOLEANS = {"true": True, "false": False}


def validate_security_mode(value: str) -> SecurityMode:
    """Validate a security mode name (case-sensitive).

    Raises:
        InvalidModeError: If value is not standard, restricted or paranoid
    """
    # Lookup by value, never by member name: "STANDARD" must not match
    for mode in SecurityMode:
        if value == mode.value:
            return mode
    raise InvalidModeError(value)


def validate_network_type(value: str) -> NetworkMode:
    """Validate a network type (case-sensitive).

    Raises:
        InvalidNetworkTypeError: If value is not host, bridge or none
    """
    for network in NetworkMode:
        if value == network.value:
            return network
    raise InvalidNetworkTypeError(value)


def validate_boolean(value: str, arg_name: str) -> bool:
    """Validate a boolean flag value.

    Only the exact strings ``true`` and ``false`` are accepted; no
    case-folding and no alternate truthy forms.

    Raises:
        InvalidBooleanError: For anything else
    """
    if value not in _BOOLEANS:
        raise InvalidBooleanError(value, arg_name)
    return _BOOLEANS[value]


def validate_resource_limit(memory: str, cpu: str) -> ResourceLimits:
    """Validate memory and CPU limits.

    Args:
        memory: Digits with an optional k/m/g/t unit suffix
        cpu: Integer or decimal CPU count

    Returns:
        ResourceLimits holding the strings verbatim

    Raises:
        InvalidResourceLimitError: If either value has the wrong shape
    """
    if not _MEMORY_RE.fullmatch(memory):
        raise InvalidResourceLimitError(memory, "memory")
    if not _CPU_RE.fullmatch(cpu):
        raise InvalidResourceLimitError(cpu, "cpu")
    return ResourceLimits(memory=memory, cpus=cpu)


def validate_env_var_name(name: str) -> str:
    """Validate an environment variable name.

    Raises:
        InvalidEnvVarNameError: If name is empty or has invalid characters
    """
    if not ENV_NAME_RE.fullmatch(name):
        raise InvalidEnvVarNameError(name)
    return name
