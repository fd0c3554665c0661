"""Unit tests for database URL handling."""
from barista.db.database import async_database_url, sync_database_url


class TestDatabaseUrls:
    """Test switching between async and plain drivers."""

    def test_async_url(self):
        assert async_database_url("postgresql://u:p@db/cafe") == "postgresql+asyncpg://u:p@db/cafe"
        assert async_database_url("sqlite:///./cafe.db") == "sqlite+aiosqlite:///./cafe.db"
        assert async_database_url("sqlite+aiosqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"

    def test_sync_url_for_migrations(self):
        assert sync_database_url("postgresql+asyncpg://u:p@db/cafe") == "postgresql://u:p@db/cafe"
        assert sync_database_url("sqlite+aiosqlite:///./cafe.db") == "sqlite:///./cafe.db"
        assert sync_database_url("postgresql://u:p@db/cafe") == "postgresql://u:p@db/cafe"

    def test_round_trip_keeps_plain_url(self):
        url = "postgresql://u:p@db/cafe"
        assert sync_database_url(async_database_url(url)) == url
