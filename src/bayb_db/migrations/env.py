"""Alembic environment for the ``kv_store`` schema.

Online migrations run over asyncpg, the only driver the package depends
on, by handing a sync callback to ``AsyncConnection.run_sync``.  Offline
mode (``alembic upgrade --sql``) renders SQL from the plain PostgreSQL URL
without connecting.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from bayb_db.config import get_async_url, get_sync_url
from bayb_db.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _set_url(url: str) -> None:
    # ConfigParser treats "%" as interpolation; passwords may contain it
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))


def _configure(**kwargs) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, **kwargs)


def run_migrations_offline() -> None:
    _set_url(get_sync_url())
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_on_connection(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    _set_url(get_async_url())
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_on_connection)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
