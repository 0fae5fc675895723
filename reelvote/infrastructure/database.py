"""Database Session Manager — async engine, per-request sessions, readiness check.

Invariants:
    - Every session rolls back on exception (no half-written ballot or entry leaks)
    - Domain errors (ReelVoteError) pass through unchanged after rollback
    - Any other SQLAlchemy error escaping a service becomes DatabaseError (HTTP 503)

Design Decisions:
    - Services translate the integrity races they expect (live survey, first ballot)
      themselves; whatever reaches this layer is unexpected
    - expire_on_commit=False: services return ORM rows after commit without lazy loads
    - Pool sizing only for server databases; SQLite (tests) uses the driver default
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from reelvote.core.errors import DatabaseError, ReelVoteError

logger = logging.getLogger(__name__)


class DatabaseSessionManager:

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_kwargs = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(pool_size=pool_size, max_overflow=max_overflow)
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except ReelVoteError:
            await session.rollback()
            raise
        except SQLAlchemyError as e:
            await session.rollback()
            operation = "commit" if isinstance(e, IntegrityError) else "query"
            logger.error(
                f"Unhandled database error during {operation}: {e}",
                extra={"error_code": "DATABASE_ERROR"},
            )
            raise DatabaseError(type(e).__name__, operation) from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """True when a trivial query round-trips (readiness probe)."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


# Set by the app lifespan
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs):
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
