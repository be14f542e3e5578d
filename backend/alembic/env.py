"""Alembic environment for the Rally schema (users, activities, messages).

Design Decisions:
    - URL resolved through app.config.Settings, so DATABASE_URL and the asyncpg driver
      rewrite behave exactly as in the running API; alembic.ini is only the fallback
    - Online migrations run on a NullPool async engine, one connection per run
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

import app.models  # noqa: F401  (populates Base.metadata)
from app.config import Settings
from app.db.base import Base

alembic_cfg = context.config
if alembic_cfg.config_file_name is not None:
    fileConfig(alembic_cfg.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    settings = Settings()
    if "database_url" in settings.model_fields_set:
        return settings.database_url
    ini_url = alembic_cfg.get_main_option("sqlalchemy.url")
    return Settings(database_url=ini_url).database_url if ini_url else settings.database_url


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_online() -> None:
    section = alembic_cfg.get_section(alembic_cfg.config_ini_section, {})
    section["sqlalchemy.url"] = _database_url()
    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    async with engine.connect() as connection:
        await connection.run_sync(_migrate)
    await engine.dispose()


if context.is_offline_mode():
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()
else:
    asyncio.run(_migrate_online())
