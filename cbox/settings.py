"""Application settings using pydantic-settings.

Loads configuration from CBOX_* environment variables only. No .env file is
read: the working directory is usually the untrusted project being sandboxed.
Values that end up in the container argv (memory, cpus, security mode) are
kept as raw strings here and validated by ``cbox.sandbox.validation``.
"""

import re
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

RUNTIME_NAME_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")

# Environment variables with fixed meaning (not configurable)
SSH_AUTH_SOCK_VAR = "SSH_AUTH_SOCK"
GITHUB_TOKEN_VARS: tuple[str, ...] = ("GH_TOKEN", "GITHUB_TOKEN")
BYPASS_SIGNAL_VARS: frozenset[str] = frozenset({"CBOX_BYPASS_SECURITY", "BYPASS_SECURITY"})


class Settings(BaseSettings):
    """cbox configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CBOX_",
        case_sensitive=False,
        extra="ignore",
    )

    # Resources
    memory: str = Field(
        default="4g",
        description="Container memory limit (e.g. 512m, 4g)",
    )
    cpus: str = Field(
        default="2",
        description="Container CPU limit (e.g. 1, 1.5)",
    )

    # Security
    security_mode: str = Field(
        default="standard",
        description="Default security mode when --security-mode is not given",
    )

    # Diagnostics
    verbose: bool = Field(
        default=False,
        description="Enable verbose diagnostics on stderr",
    )

    # Runtime
    image: str = Field(
        default="cbox:latest",
        description="Container image to launch",
    )
    runtime: str = Field(
        default="docker",
        description="Container runtime executable",
    )
    token_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        le=60,
        description="Upper bound for external token extraction (gh auth token)",
    )

    @field_validator("runtime")
    @classmethod
    def validate_runtime(cls, v: str) -> str:
        """Require a bare command name, resolved through PATH."""
        if not RUNTIME_NAME_PATTERN.fullmatch(v):
            raise ValueError(f"runtime must be a command name without a path, got {v!r}")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are loaded once and reused.
    """
    return Settings()
