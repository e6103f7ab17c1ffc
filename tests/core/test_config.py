"""Settings tests — env parsing and URL normalization."""

from app.config import Settings
from app.core.domain_types import NotifyScope


def test_postgres_url_converted_to_asyncpg():
    s = Settings(database_url="postgresql://u:p@db:5432/food")
    assert s.database_url == "postgresql+asyncpg://u:p@db:5432/food"


def test_sqlite_url_untouched():
    s = Settings(database_url="sqlite+aiosqlite:///x.db")
    assert s.database_url == "sqlite+aiosqlite:///x.db"


def test_notify_scope_from_env(monkeypatch):
    monkeypatch.setenv("NOTIFY_SCOPE", "participants")
    assert Settings().notify_scope == NotifyScope.PARTICIPANTS


def test_default_notify_scope_is_broadcast(monkeypatch):
    monkeypatch.delenv("NOTIFY_SCOPE", raising=False)
    assert Settings().notify_scope == NotifyScope.BROADCAST
