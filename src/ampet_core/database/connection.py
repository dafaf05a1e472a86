"""
Async engine setup for PostgreSQL (asyncpg) and SQLite (aiosqlite).

Plain ``postgresql://`` and ``sqlite://`` URLs are rewritten to their async
driver form, so the same ``DATABASE_URL`` works for Alembic, the import
command and the test suite.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from ..utils.config import ConfigError, DatabaseURLValidator, EnvironmentConfig

logger = logging.getLogger(__name__)

ASYNC_DRIVERS = {
    "postgresql": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


class DatabaseConfig:
    """A validated database URL plus the pool settings used for it."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 10,
        max_overflow: int = 20,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        echo: bool = False,
    ):
        try:
            self.url_info = DatabaseURLValidator.validate_url(database_url)
        except ConfigError as e:
            raise ValueError(f"Invalid database URL: {e.message}") from e
        self.database_url = database_url
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout
        self.pool_recycle = pool_recycle
        self.echo = echo

    @property
    def is_sqlite(self) -> bool:
        return self.url_info["scheme"].startswith("sqlite")

    def get_async_url(self) -> str:
        scheme = self.url_info["scheme"]
        if scheme not in ASYNC_DRIVERS:
            return self.database_url
        return ASYNC_DRIVERS[scheme] + self.database_url[len(scheme) :]

    def engine_options(self) -> Dict[str, Any]:
        """
        Keyword arguments for ``create_async_engine``.

        SQLite files get ``NullPool``: each session opens its own
        connection and the pool settings do not apply.
        """
        if self.is_sqlite:
            return {"echo": self.echo, "poolclass": NullPool}
        return {
            "echo": self.echo,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_timeout": self.pool_timeout,
            "pool_recycle": self.pool_recycle,
            "pool_pre_ping": True,
        }


def create_engine(
    database_url: str,
    echo: bool = False,
    connect_args: Optional[Dict[str, Any]] = None,
    **pool_options: Any,
) -> AsyncEngine:
    """
    Create an async engine for ``database_url``.

    ``pool_options`` (``pool_size``, ``max_overflow``, ``pool_timeout``,
    ``pool_recycle``) are passed to ``DatabaseConfig``.

    Raises:
        ValueError: If the URL is not a supported database URL
    """
    config = DatabaseConfig(database_url, echo=echo, **pool_options)
    options = config.engine_options()
    if connect_args:
        options["connect_args"] = connect_args

    engine = create_async_engine(config.get_async_url(), **options)
    logger.info(
        f"Created async engine for "
        f"{config.url_info['hostname'] or config.url_info['database']}"
    )
    return engine


async def check_connection(
    engine: AsyncEngine, max_retries: int = 3, retry_delay: float = 1.0
) -> bool:
    """Run ``SELECT 1``, retrying with exponential backoff; never raises."""
    for attempt in range(max_retries + 1):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            if attempt == max_retries:
                logger.error(f"Database unreachable after {attempt + 1} attempts: {e}")
                return False
            logger.warning(f"Database check attempt {attempt + 1} failed: {e}")
            await asyncio.sleep(retry_delay * 2**attempt)
    return False


async def close_engine(engine: AsyncEngine) -> None:
    await engine.dispose()
    logger.info("Database engine disposed")


def get_database_url(
    host: str,
    port: int = 5432,
    database: str = "postgres",
    username: str = "postgres",
    password: str = "",  # nosec B107
    driver: str = "asyncpg",
) -> str:
    """PostgreSQL URL assembled from its parts."""
    credentials = f"{username}:{password}" if password else username
    return f"postgresql+{driver}://{credentials}@{host}:{port}/{database}"


def get_database_url_from_env(key: str = "DATABASE_URL") -> str:
    """
    Read the database URL from the environment.

    Raises:
        ConfigError: If the variable is not set
    """
    return EnvironmentConfig.get_str(key, required=True)
