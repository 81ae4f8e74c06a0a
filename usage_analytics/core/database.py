"""
Database connection, session management and raw query execution using SQLAlchemy.
"""
from typing import Any, AsyncGenerator, Sequence
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from usage_analytics.core.config import settings

# Create declarative base for models
Base = declarative_base()

# Positional placeholders are rendered as :p1, :p2, ... in generated SQL
BIND_PREFIX = "p"

if settings.database_type == "sqlite":
    engine = create_async_engine(
        settings.database_url,
        echo=settings.app_debug,
        poolclass=NullPool,  # SQLite doesn't support connection pooling well
        connect_args={"check_same_thread": False}
    )
else:
    engine = create_async_engine(
        settings.database_url,
        echo=settings.app_debug,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,  # Verify connections before using
        pool_recycle=3600,  # Recycle connections after 1 hour
    )

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)


def bind_name(position: int) -> str:
    """Name of the bind parameter for a 1-based placeholder position."""
    return f"{BIND_PREFIX}{position}"


class QueryExecutor:
    """
    Read-only query collaborator.

    Runs SQL text with positional parameters and returns each row as a
    mapping from column alias to value.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def query(self, sql: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        """
        Execute a parameterized statement.

        Args:
            sql: Statement text using :p1..:pN placeholders
            params: Values bound to the placeholders in order

        Returns:
            List of rows as dictionaries
        """
        binds = {bind_name(position): value for position, value in enumerate(params, start=1)}
        result = await self.session.execute(text(sql), binds)
        return [dict(row) for row in result.mappings().all()]


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function to get database session.

    Yields:
        AsyncSession: Database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """
    Create the request_stats and channel_stats tables.
    Only used for local development; the production schema is managed elsewhere.
    """
    import usage_analytics.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db() -> None:
    """
    Drop all database tables.
    Warning: This will delete all data!
    """
    import usage_analytics.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def close_db() -> None:
    """Close database engine and connections."""
    await engine.dispose()
