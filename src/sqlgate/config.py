"""Application configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from environment with SQLGATE_ prefix.

    List values are read as JSON, e.g.
    ``SQLGATE_BLOCKED_TABLES='["users", "password_resets"]'``.
    """

    model_config = {
        "env_prefix": "SQLGATE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    # Whitelist
    whitelist_enabled: bool = True
    whitelist_patterns: list[str] = []  # appended to the built-in patterns

    # Blacklist extras
    blocked_tables: list[str] = []

    # Inputs longer than this are rejected before scanning (None = no limit)
    max_query_length: int | None = 20000

    verbose: bool = False
