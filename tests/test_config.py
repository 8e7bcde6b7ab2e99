import pytest

from factory_ops.core.settings import get_app_settings
from factory_ops.db.config import Settings

_DB_VARS = ("DATABASE_URL", "POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_DB", "POSTGRES_HOST", "POSTGRES_PORT")


@pytest.fixture
def clean_db_env(monkeypatch):
    for name in _DB_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_database_url_rewritten_for_asyncpg(clean_db_env):
    clean_db_env.setenv("DATABASE_URL", "postgres://u:p@db.example.com:5432/factory")
    assert Settings(_env_file=None).async_database_url == "postgresql+asyncpg://u:p@db.example.com:5432/factory"


def test_database_url_built_from_parts(clean_db_env):
    clean_db_env.setenv("POSTGRES_USER", "u")
    clean_db_env.setenv("POSTGRES_PASSWORD", "p")
    clean_db_env.setenv("POSTGRES_DB", "factory")
    assert Settings(_env_file=None).async_database_url == "postgresql+asyncpg://u:p@localhost:5432/factory"


def test_missing_database_configuration(clean_db_env):
    with pytest.raises(ValueError):
        Settings(_env_file=None).database_url


def test_cors_origins_from_json_array(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", '["https://a.example.com", "https://b.example.com"]')
    assert get_app_settings().CORS_ORIGINS == ["https://a.example.com", "https://b.example.com"]
