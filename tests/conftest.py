"""Shared test fixtures for cbox."""

import logging
import os

import pytest

from cbox.settings import BYPASS_SIGNAL_VARS, GITHUB_TOKEN_VARS, SSH_AUTH_SOCK_VAR, get_settings

# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Settings are cached per process; start every test from a clean load."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _restore_logging():
    """configure_logging() replaces root handlers; put them back afterwards."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("cbox").setLevel(logging.NOTSET)


# =============================================================================
# ENVIRONMENT
# =============================================================================


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every variable cbox reads from the process environment."""
    for name in list(os.environ):
        if name.startswith("CBOX_"):
            monkeypatch.delenv(name, raising=False)
    for name in (*BYPASS_SIGNAL_VARS, *GITHUB_TOKEN_VARS, SSH_AUTH_SOCK_VAR):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# =============================================================================
# TOKENS
# =============================================================================


@pytest.fixture
def classic_token() -> str:
    return "ghp_" + "a1B2c3D4e5" * 3 + "f6G7h8"


@pytest.fixture
def app_token() -> str:
    return "ghs_" + "Z9y8X7w6V5" * 4


@pytest.fixture
def fine_grained_token() -> str:
    return "github_pat_" + "11AbCdEfGh_" * 8
