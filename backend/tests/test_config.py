import pytest

from backend.app.core.config import Settings


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgres://u:p@db/folio", "postgresql+asyncpg://u:p@db/folio"),
        ("postgresql://u:p@db/folio", "postgresql+asyncpg://u:p@db/folio"),
        ("postgresql+asyncpg://u:p@db/folio", "postgresql+asyncpg://u:p@db/folio"),
        ("sqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
    ],
)
def test_database_url_normalized(url, expected):
    assert _settings(DATABASE_URL=url).DATABASE_URL == expected


def test_defaults():
    config = _settings()
    assert config.is_sqlite
    assert config.BACKEND_CORS_ORIGINS == ["*"]
    assert config.trusted_proxies == []
    assert config.upload_allowed_prefixes == ["projects/", "settings/"]
    assert config.SESSION_TTL_MINUTES == 30
    assert config.RATE_LIMIT_MAX_FAILURES == 5


def test_csv_settings_are_split_and_trimmed():
    config = _settings(
        CORS_ORIGINS="https://a.example, https://b.example",
        TRUSTED_PROXIES=" 10.0.0.1 ,,10.0.0.2",
    )
    assert config.BACKEND_CORS_ORIGINS == ["https://a.example", "https://b.example"]
    assert config.trusted_proxies == ["10.0.0.1", "10.0.0.2"]


def test_no_environment_switch():
    # Behaviour is driven by explicit settings only
    assert "ENVIRONMENT" not in Settings.model_fields
