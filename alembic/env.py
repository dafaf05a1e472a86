"""Alembic migration environment for the ampet-core schema."""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context
from ampet_core.database.connection import DatabaseConfig, get_database_url
from ampet_core.models import Base
from ampet_core.utils.config import EnvironmentConfig

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def resolve_database_url() -> str:
    """
    ``DATABASE_URL``, then ``sqlalchemy.url`` from alembic.ini, then a
    PostgreSQL URL built from the ``DB_*`` variables.
    """
    env = EnvironmentConfig
    url = env.get_str("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
    if not url:
        url = get_database_url(
            host=env.get_str("DB_HOST", "localhost"),
            port=env.get_int("DB_PORT", 5432),
            database=env.get_str("DB_NAME", "ampet"),
            username=env.get_str("DB_USER", "postgres"),
            password=env.get_str("DB_PASSWORD", ""),
        )
    return DatabaseConfig(url).get_async_url()


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting."""
    context.configure(
        url=resolve_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def apply_migrations(connection: Connection) -> None:
    # SQLite cannot ALTER most constraints in place
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = resolve_database_url()
    engine = async_engine_from_config(
        section, prefix="sqlalchemy.", poolclass=pool.NullPool
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(apply_migrations)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
