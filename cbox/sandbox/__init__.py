"""Sandbox policy resolution and launch planning.

Turns a security mode plus explicit overrides into a concrete policy,
then into the argument vector for the container runtime. All untrusted
input passes through the validators here before it reaches the argv.
"""

from cbox.sandbox.launch import EnvVarSpec, LaunchPlan, MountSpec, build_launch_plan
from cbox.sandbox.paths import ValidatedPath, validate_path
from cbox.sandbox.policies import (
    NetworkMode,
    OverrideSet,
    ResolvedPolicy,
    SecurityMode,
    resolve_policy,
)
from cbox.sandbox.runner import SandboxRunner, run_plan
from cbox.sandbox.tokens import validate_token
from cbox.sandbox.validation import (
    validate_boolean,
    validate_network_type,
    validate_resource_limit,
    validate_security_mode,
)

__all__ = [
    # Validation
    "validate_security_mode",
    "validate_network_type",
    "validate_boolean",
    "validate_resource_limit",
    "validate_path",
    "validate_token",
    "ValidatedPath",
    # Policies
    "SecurityMode",
    "NetworkMode",
    "OverrideSet",
    "ResolvedPolicy",
    "resolve_policy",
    # Launch
    "MountSpec",
    "EnvVarSpec",
    "LaunchPlan",
    "build_launch_plan",
    # Runner
    "SandboxRunner",
    "run_plan",
]
