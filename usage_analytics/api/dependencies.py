"""
FastAPI dependencies for dependency injection.
"""
from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from usage_analytics.core.database import QueryExecutor, get_db
from usage_analytics.core.exceptions import ValidationError
from usage_analytics.core.logger import get_logger
from usage_analytics.services.analytics import UsageAnalyticsService
from usage_analytics.services.filters import require_api_key

logger = get_logger(__name__)


# ============================================================================
# Database Dependencies
# ============================================================================

async def get_database() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async for session in get_db():
        yield session


async def get_query_executor(
    db: AsyncSession = Depends(get_database)
) -> QueryExecutor:
    """Get a raw query executor bound to the request's session."""
    return QueryExecutor(db)


async def get_analytics_service(
    executor: QueryExecutor = Depends(get_query_executor)
) -> UsageAnalyticsService:
    """Get the analytics service for this request."""
    return UsageAnalyticsService(executor)


# ============================================================================
# Authentication Dependencies
# ============================================================================

async def verify_api_key(request: Request) -> str:
    """
    Read the apiKey query parameter.

    Only presence is checked; the key scopes every query to its own records.

    Raises:
        ValidationError: If apiKey is missing or empty
    """
    try:
        return require_api_key(request.query_params)
    except ValidationError:
        logger.warning("API key missing in request", path=request.url.path)
        raise
