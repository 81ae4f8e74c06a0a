"""
Usage statistics API routes.
"""
from typing import List

from fastapi import APIRouter, Depends

from usage_analytics.api.dependencies import get_analytics_service, verify_api_key
from usage_analytics.api.schemas import ChannelStat, ErrorResponse, ModelStat, OverviewStat
from usage_analytics.core.logger import get_logger
from usage_analytics.services.analytics import UsageAnalyticsService

logger = get_logger(__name__)

router = APIRouter(prefix="/stats", tags=["stats"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.get(
    "/channels",
    response_model=List[ChannelStat],
    responses=ERROR_RESPONSES
)
async def get_channel_stats(
    api_key: str = Depends(verify_api_key),
    service: UsageAnalyticsService = Depends(get_analytics_service)
):
    """Per-provider request counts, success rate, tokens and timings."""
    logger.info("Channel stats requested", api_key=api_key)
    return await service.get_channel_stats(api_key)


@router.get(
    "/models",
    response_model=List[ModelStat],
    responses=ERROR_RESPONSES
)
async def get_model_stats(
    api_key: str = Depends(verify_api_key),
    service: UsageAnalyticsService = Depends(get_analytics_service)
):
    """Per-model request counts, success rate, tokens and timings."""
    logger.info("Model stats requested", api_key=api_key)
    return await service.get_model_stats(api_key)


@router.get(
    "/overview",
    response_model=OverviewStat,
    responses=ERROR_RESPONSES
)
async def get_overview_stats(
    api_key: str = Depends(verify_api_key),
    service: UsageAnalyticsService = Depends(get_analytics_service)
):
    """Totals across all requests for an API key. Zero-valued when there are none."""
    logger.info("Overview stats requested", api_key=api_key)
    return await service.get_overview(api_key)
