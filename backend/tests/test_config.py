from quill.core.config import Settings


def test_sync_url_follows_override() -> None:
    settings = Settings(database_url_override="postgresql+asyncpg://u:p@db:5432/quill_prod")
    assert settings.database_url == "postgresql+asyncpg://u:p@db:5432/quill_prod"
    assert settings.database_url_sync == "postgresql://u:p@db:5432/quill_prod"


def test_sync_url_for_sqlite_override() -> None:
    settings = Settings(database_url_override="sqlite+aiosqlite:///./quill.db")
    assert settings.database_url_sync == "sqlite:///./quill.db"


def test_sync_url_from_postgres_parts() -> None:
    settings = Settings(
        database_url_override="",
        postgres_host="pg",
        postgres_port=5433,
        postgres_db="quill_db",
        postgres_user="quill",
        postgres_password="secret",
    )
    assert settings.database_url == "postgresql+asyncpg://quill:secret@pg:5433/quill_db"
    assert settings.database_url_sync == "postgresql://quill:secret@pg:5433/quill_db"
