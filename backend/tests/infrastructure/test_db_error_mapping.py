"""Database — SQLAlchemy failures mapped into the Rally taxonomy."""

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError

from app.core.errors import DatabaseError, TransientStoreError
from app.infrastructure.database import DatabaseSessionManager, map_db_error


def test_operational_error_is_transient():
    assert isinstance(map_db_error(OperationalError("SELECT 1", {}, Exception("down"))), TransientStoreError)


def test_integrity_error_is_not_retried():
    mapped = map_db_error(IntegrityError("INSERT", {}, Exception("dup")))
    assert isinstance(mapped, DatabaseError)
    assert mapped.operation == "commit"


def test_driver_and_unknown_errors():
    assert map_db_error(DBAPIError("SELECT", {}, Exception("x"))).operation == "query"
    assert map_db_error(SQLAlchemyError("x")).operation == "unknown"


async def test_session_maps_and_chains(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'x.db'}")
    try:
        with pytest.raises(DatabaseError) as exc_info:
            async with manager.session():
                raise SQLAlchemyError("boom")
        assert isinstance(exc_info.value.__cause__, SQLAlchemyError)
        assert await manager.health_check() is True
    finally:
        await manager.dispose()
