"""Database — async engine, short-lived sessions, SQLAlchemy error mapping.

Invariants:
    - A session that sees any exception is rolled back before the exception leaves it
    - RallyError raised inside a session passes through unchanged
    - Driver/ORM failures leave this module only as RallyError subclasses:
      connection-level trouble -> TransientStoreError (the enforcer may retry),
      anything else -> DatabaseError (never retried)

Design Decisions:
    - Module-level db_manager set by init_db() in the FastAPI lifespan; callers use
      get_db_manager() at call time so tests can swap the manager
    - expire_on_commit=False: snapshots are built from rows after commit without lazy loads
    - Pool sizing only for server databases; SQLite keeps the dialect's own pool
    - create_schema() is for tests and local runs; deployed schemas come from Alembic
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import app.models  # noqa: F401  (registers every table on Base.metadata)
from app.core.errors import DatabaseError, RallyError, TransientStoreError
from app.db.base import Base

logger = logging.getLogger(__name__)


def map_db_error(exc: SQLAlchemyError) -> RallyError:
    """Translate a SQLAlchemy exception into the Rally error taxonomy."""
    if isinstance(exc, (OperationalError, PoolTimeoutError)):
        logger.warning(f"Store unavailable: {exc}")
        return TransientStoreError("execute")
    if isinstance(exc, IntegrityError):
        logger.error(f"Constraint violation: {exc}")
        return DatabaseError("Integrity constraint violated", "commit")
    if isinstance(exc, DBAPIError):
        logger.error(f"Driver failure: {exc}")
        return DatabaseError("Database driver error", "query")
    logger.error(f"Unmapped SQLAlchemy failure: {exc}")
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Owns the async engine; hands out one short session per store primitive."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        options: dict = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            options.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **options)
        self._sessions = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """One unit of work: rolled back and mapped on failure, always closed."""
        db = self._sessions()
        try:
            yield db
        except RallyError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            raise map_db_error(e) from e
        finally:
            await db.close()

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> bool:
        """SELECT 1 round trip for the readiness probe."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        except RallyError as e:
            logger.error(f"Readiness probe failed: {e.message}")
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    logger.info(f"Database engine ready ({db_manager.engine.dialect.name})")
    return db_manager


def get_db_manager() -> DatabaseSessionManager:
    """Current manager, resolved per call."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    return db_manager
