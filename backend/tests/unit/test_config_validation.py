"""
Tests for configuration validation.

Settings are constructed directly with keyword arguments; ``_env_file=None``
keeps a developer's local .env out of the picture.
"""

import pytest
from pydantic import ValidationError

from travel_planner.core.config import Settings

VALID_SECRET = "a" * 32


def make_settings(**overrides) -> Settings:
    values = {"secret_key": VALID_SECRET, "database_url": "sqlite+aiosqlite:///:memory:"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSecretKey:

    def test_short_secret_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            make_settings(secret_key="too-short")
        assert "at least 32 characters" in str(exc_info.value)

    def test_placeholder_secret_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            make_settings(secret_key="generate-with-openssl-rand-hex-32")
        assert "placeholder" in str(exc_info.value)

    def test_blank_secret_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(secret_key="   ")


class TestDatabaseUrl:

    def test_postgres_async_url_accepted(self):
        settings = make_settings(database_url="postgresql+asyncpg://user:pw@localhost/travel")
        assert settings.database_url.startswith("postgresql+asyncpg:")

    def test_sync_driver_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            make_settings(database_url="postgresql://user:pw@localhost/travel")
        assert "DATABASE_URL must start with" in str(exc_info.value)


class TestParsing:

    def test_cors_origins_from_comma_separated_string(self):
        settings = make_settings(cors_origins="http://a.test, http://b.test")
        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    def test_cors_origins_from_json_string(self):
        settings = make_settings(cors_origins='["http://a.test"]')
        assert settings.cors_origins == ["http://a.test"]

    def test_llm_provider_normalized(self):
        assert make_settings(llm_provider=" OpenAI ").llm_provider == "openai"

    def test_unknown_llm_provider_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(llm_provider="gemini")

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("ACCESS_TOKEN_EXPIRE_MINUTES", raising=False)
        settings = make_settings()
        assert settings.api_prefix == "/api"
        assert settings.rate_limit_requests == 100
        assert settings.rate_limit_window_seconds == 900
        assert settings.access_token_expire_minutes == 60 * 24 * 7

    def test_is_development(self):
        assert make_settings(environment="Development").is_development is True
        assert make_settings(environment="production").is_development is False
