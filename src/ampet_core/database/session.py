"""
Session and transaction scopes over an async engine.

``SessionManager.get_transaction`` is what the SQL import collaborators use:
every account or pet write commits on its own, so one failed row never
undoes another.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from sqlalchemy import MetaData, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


class SessionManager:
    """Hands out sessions bound to one engine."""

    def __init__(self, engine: AsyncEngine, **session_options: Any):
        self.engine = engine
        self._is_initialized = False
        session_options.setdefault("expire_on_commit", False)
        self.session_factory = async_sessionmaker(
            bind=engine, class_=AsyncSession, **session_options
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """A session that is rolled back if the block raises, then closed."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception as e:
                await session.rollback()
                logger.error(f"Rolled back session after error: {e}")
                raise

    @asynccontextmanager
    async def get_transaction(self) -> AsyncIterator[AsyncSession]:
        """A session inside ``begin()``: committed on success."""
        async with self.get_session() as session:
            async with session.begin():
                yield session

    async def health_check(self) -> Dict[str, Any]:
        started = time.perf_counter()
        try:
            async with self.get_session() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return {
                "status": "unhealthy",
                "checks": {
                    "basic_query": {
                        "status": "fail",
                        "error": str(e),
                        "error_type": type(e).__name__,
                    }
                },
            }
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        return {
            "status": "healthy",
            "checks": {"basic_query": {"status": "pass", "response_time": elapsed_ms}},
        }

    async def initialize_database(self, metadata: Optional[MetaData] = None) -> bool:
        """
        Check the connection and, given ``metadata``, create missing tables.

        Returns False instead of raising when either step fails.
        """
        if (await self.health_check())["status"] != "healthy":
            return False

        if metadata is not None:
            try:
                async with self.engine.begin() as conn:
                    await conn.run_sync(metadata.create_all)
            except SQLAlchemyError as e:
                logger.error(f"Could not create tables: {e}")
                return False
            logger.info("Database tables are in place")

        self._is_initialized = True
        return True

    async def close_all_sessions(self) -> None:
        await self.engine.dispose()

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

