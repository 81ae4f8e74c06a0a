"""
Request log API routes.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from usage_analytics.api.dependencies import get_analytics_service, verify_api_key
from usage_analytics.api.schemas import ErrorResponse, LogListResponse
from usage_analytics.services.analytics import UsageAnalyticsService
from usage_analytics.services.filters import parse_log_filters

router = APIRouter(prefix="/logs", tags=["logs"])


@router.get(
    "",
    response_model=LogListResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }
)
async def get_request_logs(
    api_key: str = Depends(verify_api_key),
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Page size, clamped to 1-100"),
    model: Optional[str] = Query(None, description="Exact model name"),
    provider: Optional[str] = Query(None, description="Exact provider name"),
    status: Optional[str] = Query(None, description="'true' or 'false'; anything else is ignored"),
    service: UsageAnalyticsService = Depends(get_analytics_service)
):
    """
    List chat completion requests for an API key, newest first.

    Unparsable page or limit values fall back to their defaults.
    """
    filters = parse_log_filters({
        "apiKey": api_key,
        "page": page,
        "limit": limit,
        "model": model,
        "provider": provider,
        "status": status,
    })
    return await service.get_logs(filters)
