"""Shared pytest fixtures for the SQL gate test suite."""

from __future__ import annotations

import pytest

from sqlgate.config import Settings
from sqlgate.sql.guard import QueryValidator
from sqlgate.tools import sql_tools

_SETTINGS_ENV = (
    "SQLGATE_WHITELIST_ENABLED",
    "SQLGATE_WHITELIST_PATTERNS",
    "SQLGATE_BLOCKED_TABLES",
    "SQLGATE_MAX_QUERY_LENGTH",
    "SQLGATE_VERBOSE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the developer's SQLGATE_* environment out of the tests."""
    for key in _SETTINGS_ENV:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def validator() -> QueryValidator:
    """Validator with the default whitelist enabled."""
    return QueryValidator()


@pytest.fixture
def permissive() -> QueryValidator:
    """Validator with whitelist matching disabled (blacklist still applies)."""
    return QueryValidator(whitelist_enabled=False)


@pytest.fixture
def settings() -> Settings:
    """Default settings, ignoring any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def tool_validator(validator: QueryValidator):
    """Wire a fresh validator into the tool module and reset it afterwards."""
    sql_tools.set_validator(validator)
    yield validator
    sql_tools.set_validator(None)
