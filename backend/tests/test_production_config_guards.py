import pytest

from datewrapped.core.config import settings
from datewrapped.core.database import async_database_url
from datewrapped.core.llm import normalize_openai_base_url
from datewrapped.core.startup_checks import validate_production_settings


@pytest.fixture
def production(monkeypatch):
    monkeypatch.setattr(settings, "DEBUG", False)
    monkeypatch.setattr(settings, "JWT_SECRET", "x" * 64)
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(settings, "WRAPPED_MAX_TEMPLATES", 10)
    return monkeypatch


def test_production_settings_accepted(production):
    validate_production_settings(settings)


@pytest.mark.parametrize("secret", ["", "secret", "your-secret-key-change-in-production", "short-but-unique"])
def test_production_requires_strong_jwt_secret(production, secret):
    production.setattr(settings, "JWT_SECRET", secret)
    with pytest.raises(RuntimeError):
        validate_production_settings(settings)


def test_production_requires_openai_key(production):
    production.setattr(settings, "OPENAI_API_KEY", "  ")
    with pytest.raises(RuntimeError):
        validate_production_settings(settings)


def test_production_requires_template_cap(production):
    production.setattr(settings, "WRAPPED_MAX_TEMPLATES", 0)
    with pytest.raises(RuntimeError):
        validate_production_settings(settings)


def test_debug_skips_checks(production):
    production.setattr(settings, "DEBUG", True)
    production.setattr(settings, "JWT_SECRET", "")
    validate_production_settings(settings)


@pytest.mark.parametrize("url,expected", [
    ("postgresql://u:p@db/wrapped", "postgresql+asyncpg://u:p@db/wrapped"),
    ("postgres://u:p@db/wrapped", "postgresql+asyncpg://u:p@db/wrapped"),
    ("sqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
    ("postgresql+asyncpg://u:p@db/wrapped", "postgresql+asyncpg://u:p@db/wrapped"),
])
def test_async_database_url(url, expected):
    assert async_database_url(url) == expected


@pytest.mark.parametrize("url,expected", [
    ("https://api.openai.com", "https://api.openai.com/v1"),
    ("https://api.openai.com/v1/", "https://api.openai.com/v1"),
    ("", ""),
])
def test_normalize_openai_base_url(url, expected):
    assert normalize_openai_base_url(url) == expected
