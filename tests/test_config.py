from quickbite.config import Settings


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///./menu.db")
    monkeypatch.setenv("MAX_PAGE_SIZE", "50")
    monkeypatch.setenv("TRACING_ENABLED", "false")

    settings = Settings()

    assert settings.database_url == "sqlite+aiosqlite:///./menu.db"
    assert settings.max_page_size == 50
    assert settings.tracing_enabled is False
    assert settings.default_page_size == 20
