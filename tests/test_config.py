import pytest

from instabids.core.config import load_settings
from instabids.core.exceptions import ConfigurationError


def test_loads_from_environment():
    loaded = load_settings()
    assert loaded.DATABASE_URL.startswith("sqlite+aiosqlite")
    assert loaded.JWT_ALGORITHM == "HS256"


def test_missing_required_setting(monkeypatch):
    monkeypatch.delenv("JWT_SECRET_KEY")
    with pytest.raises(ConfigurationError) as exc_info:
        load_settings(_env_file=None)
    assert "JWT_SECRET_KEY" in exc_info.value.message


@pytest.mark.parametrize("value", ["your-anon-key", "https://your-project-url.example.com", "  "])
def test_placeholder_values_rejected(value):
    with pytest.raises(ConfigurationError):
        load_settings(JWT_SECRET_KEY=value)


def test_placeholder_database_url_rejected():
    with pytest.raises(ConfigurationError) as exc_info:
        load_settings(DATABASE_URL="postgresql+asyncpg://changeme@db/instabids")
    assert "DATABASE_URL" in exc_info.value.message
