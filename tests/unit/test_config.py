"""Unit tests for environment-driven settings."""

from sqlgate.config import Settings
from sqlgate.sql.guard import QueryValidator


class TestSettings:
    def test_defaults(self, settings):
        assert settings.whitelist_enabled is True
        assert settings.whitelist_patterns == []
        assert settings.blocked_tables == []
        assert settings.max_query_length == 20000

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("SQLGATE_WHITELIST_ENABLED", "false")
        monkeypatch.setenv("SQLGATE_BLOCKED_TABLES", '["users", "password_resets"]')
        monkeypatch.setenv("SQLGATE_MAX_QUERY_LENGTH", "500")

        settings = Settings(_env_file=None)

        assert settings.whitelist_enabled is False
        assert settings.blocked_tables == ["users", "password_resets"]
        assert settings.max_query_length == 500

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text('SQLGATE_WHITELIST_PATTERNS=["SELECT 1"]\n', encoding="utf-8")

        settings = Settings(_env_file=env_file)

        assert settings.whitelist_patterns == ["SELECT 1"]

    def test_validator_from_env(self, monkeypatch):
        monkeypatch.setenv("SQLGATE_WHITELIST_ENABLED", "false")
        validator = QueryValidator.from_settings(Settings(_env_file=None))
        assert validator.whitelist_enabled is False
        assert validator.is_valid("SELECT MAX(id) FROM posts")
