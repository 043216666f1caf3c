"""cbox exception hierarchy.

Base exceptions for validation, policy resolution and launch with
correlation ID support and an exit code per error class.

Usage:
    from cbox.exceptions import ValidationError, SecurityBypassDetected

    try:
        policy = resolve(mode, overrides, environment=env)
    except ValidationError as e:
        logger.error("Rejected input (%s): %s", e.correlation_id, e)
        raise SystemExit(e.exit_code)
"""

import uuid
from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes exposed to the top-level driver."""

    SUCCESS = 0
    VALIDATION_ERROR = 1
    SECURITY_VIOLATION = 3
    MISSING_DEPENDENCY = 127


class CboxError(Exception):
    """Base exception for all cbox errors.

    Carries a correlation_id for tracing errors across layers.
    """

    exit_code: ExitCode = ExitCode.VALIDATION_ERROR

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(CboxError):
    """User-correctable input rejection.

    ``hint`` names the valid alternatives so the caller can print an
    actionable message.
    """

    exit_code = ExitCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        *,
        hint: str = "",
        arg_name: str | None = None,
        **kwargs,
    ):
        self.hint = hint
        self.arg_name = arg_name
        super().__init__(message, **kwargs)


class InvalidModeError(ValidationError):
    """Security mode outside the closed set."""

    def __init__(self, value: str, **kwargs):
        self.value = value
        super().__init__(
            f"Invalid security mode: {value!r}",
            hint="Valid modes: standard, restricted, paranoid",
            arg_name="--security-mode",
            **kwargs,
        )


class InvalidNetworkTypeError(ValidationError):
    """Network type outside the closed set."""

    def __init__(self, value: str, **kwargs):
        self.value = value
        super().__init__(
            f"Invalid network type: {value!r}",
            hint="Valid types: host, bridge, none",
            arg_name="--network",
            **kwargs,
        )


class InvalidBooleanError(ValidationError):
    """Boolean flag value that is not exactly ``true`` or ``false``."""

    def __init__(self, value: str, arg_name: str, **kwargs):
        self.value = value
        super().__init__(
            f"Invalid boolean value for {arg_name}: {value!r}",
            hint="Valid values: true, false",
            arg_name=arg_name,
            **kwargs,
        )


class InvalidResourceLimitError(ValidationError):
    """Memory or CPU limit in an unsupported format."""

    _HINTS = {
        "memory": "Use format like: 1g, 512m, 2048k, or plain number (bytes)",
        "cpu": "Use format like: 1, 2, 0.5, 1.5",
    }

    def __init__(self, value: str, kind: str, **kwargs):
        self.value = value
        self.kind = kind
        super().__init__(
            f"Invalid {kind} limit format: {value!r}",
            hint=self._HINTS.get(kind, ""),
            arg_name="--memory" if kind == "memory" else "--cpus",
            **kwargs,
        )


class DangerousPathCharactersError(ValidationError):
    """Path containing shell metacharacters."""

    def __init__(self, path: str, **kwargs):
        self.path = path
        super().__init__(
            f"Path contains dangerous shell characters: {path!r}",
            hint="Characters like ; | & > < $( ${ and backticks are not allowed",
            **kwargs,
        )


class NullByteInPathError(ValidationError):
    """Path containing a NUL byte."""

    def __init__(self, path: str, **kwargs):
        self.path = path
        super().__init__(
            f"Path contains null bytes: {path!r}",
            hint="Remove NUL characters from the path",
            **kwargs,
        )


class SystemDirectoryDeniedError(ValidationError):
    """Path resolving into a protected system directory."""

    def __init__(self, path: str, **kwargs):
        self.path = path
        super().__init__(
            f"Access to system directory denied: {path!r}",
            hint="Use a directory under /home, /tmp, /var/tmp or another non-system location",
            **kwargs,
        )


class InvalidTokenFormatError(ValidationError):
    """Bearer token with an unrecognised shape.

    Only the token kind (usually its source variable) is recorded; the
    token itself never reaches the message.
    """

    def __init__(self, token_kind: str, **kwargs):
        self.token_kind = token_kind
        super().__init__(
            f"Invalid token format for {token_kind}",
            hint="Expected a GitHub token (ghp_..., ghs_... or github_pat_...)",
            arg_name=token_kind,
            **kwargs,
        )


class InvalidEnvVarNameError(ValidationError):
    """Environment variable name not matching ``[A-Za-z_][A-Za-z0-9_]*``."""

    def __init__(self, name: str, **kwargs):
        self.name = name
        super().__init__(
            f"Invalid environment variable name: {name!r}",
            hint="Use -e NAME or -e NAME=value with NAME made of letters, digits and "
            "underscores, not starting with a digit",
            arg_name="-e",
            **kwargs,
        )


class WorkdirNotFoundError(ValidationError):
    """Working directory missing or not a directory."""

    def __init__(self, path: str, **kwargs):
        self.path = path
        super().__init__(
            f"Working directory does not exist: {path!r}",
            hint="Pass an existing directory or run cbox from inside one",
            arg_name="WORKDIR",
            **kwargs,
        )


# =============================================================================
# FATAL ERRORS
# =============================================================================


class SecurityBypassDetected(CboxError):
    """A bypass-signal environment variable was present.

    Not correctable by any combination of flags.
    """

    exit_code = ExitCode.SECURITY_VIOLATION

    def __init__(self, variables: list[str], **kwargs):
        self.variables = list(variables)
        super().__init__(
            "Attempted security bypass detected "
            f"(environment: {', '.join(self.variables)}). "
            "Security features cannot be disabled through environment variables",
            **kwargs,
        )


class ContractViolation(CboxError):
    """Unvalidated data reached the launch-plan builder."""

    exit_code = ExitCode.VALIDATION_ERROR


class DependencyError(CboxError):
    """A required external executable is missing."""

    exit_code = ExitCode.MISSING_DEPENDENCY
