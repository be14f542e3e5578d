"""Settings — driver rewrite and page size bounds."""

import pytest
from pydantic import ValidationError

from app.config import Settings


def test_postgres_url_gets_asyncpg_driver():
    s = Settings(database_url="postgresql://u:p@host:5432/rally")
    assert s.database_url == "postgresql+asyncpg://u:p@host:5432/rally"


def test_other_urls_untouched():
    assert Settings(database_url="sqlite+aiosqlite:///x.db").database_url == "sqlite+aiosqlite:///x.db"


def test_default_page_size_cannot_exceed_max():
    with pytest.raises(ValidationError):
        Settings(default_page_size=50, max_page_size=10)


def test_retry_defaults_are_bounded():
    s = Settings()
    assert s.store_max_attempts >= 1
    assert s.store_base_delay_ms <= s.store_max_delay_ms
    assert s.store_max_attempts == 5
