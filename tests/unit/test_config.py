from reconciliation.config import Settings, get_settings


def test_defaults(monkeypatch):
    for name in ("PORT", "LOG_FORMAT", "DB_POOL_MODE", "DB_CREATE_SCHEMA"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.port == 3000
    assert settings.db_pool_mode == "queue"
    assert settings.db_create_schema is True


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("LOG_FORMAT", "text")
    monkeypatch.setenv("DB_POOL_MODE", "null")

    settings = Settings(_env_file=None)

    assert settings.port == 8080
    assert settings.log_format == "text"
    assert settings.db_pool_mode == "null"


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
