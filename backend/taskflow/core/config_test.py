"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from taskflow.core.config import Settings


@pytest.mark.unit
def test_cors_origins_from_comma_separated_string():
    settings = Settings(BACKEND_CORS_ORIGINS="https://a.example, https://b.example")

    assert settings.BACKEND_CORS_ORIGINS == ["https://a.example", "https://b.example"]


@pytest.mark.unit
def test_blank_cors_origins_allow_all():
    assert Settings(BACKEND_CORS_ORIGINS=" ").BACKEND_CORS_ORIGINS == ["*"]


@pytest.mark.unit
def test_asyncpg_dsn_drops_driver():
    settings = Settings(DATABASE_URL="postgresql+asyncpg://u:p@db:5432/taskflow")

    assert settings.asyncpg_dsn == "postgresql://u:p@db:5432/taskflow"


@pytest.mark.unit
@pytest.mark.parametrize("value", ["app-user", "app_user; DROP ROLE x", "AppUser"])
def test_app_role_must_be_plain_identifier(value):
    with pytest.raises(ValidationError):
        Settings(APP_DB_ROLE=value)


@pytest.mark.unit
def test_cors_origins_from_environment(monkeypatch):
    monkeypatch.setenv("BACKEND_CORS_ORIGINS", "https://a.example,https://b.example")

    assert Settings().BACKEND_CORS_ORIGINS == ["https://a.example", "https://b.example"]
