"""
Usage analytics service: build a query, run it once, format the rows.
"""
from typing import Any, List, Mapping, Protocol, Sequence

from usage_analytics.api.schemas import ChannelStat, LogListResponse, ModelStat, OverviewStat
from usage_analytics.core.exceptions import DataAccessError
from usage_analytics.core.logger import get_logger
from usage_analytics.services import formatter
from usage_analytics.services.filters import LogFilters
from usage_analytics.services.pagination import paginate
from usage_analytics.services.query_builder import (
    BuiltQuery,
    build_channel_stats_query,
    build_logs_query,
    build_model_stats_query,
    build_overview_query,
)

logger = get_logger(__name__)


class QueryRunner(Protocol):
    """Anything that can execute parameterized SQL and return rows as mappings."""

    async def query(self, sql: str, params: Sequence[Any]) -> Sequence[Mapping[str, Any]]:
        ...


class UsageAnalyticsService:
    """Read-only analytics over request_stats and channel_stats."""

    def __init__(self, executor: QueryRunner):
        """
        Initialize the service.

        Args:
            executor: Query collaborator, usually a QueryExecutor bound to a session
        """
        self.executor = executor

    async def _fetch(self, built: BuiltQuery, operation: str) -> Sequence[Mapping[str, Any]]:
        """
        Run a built query.

        Raises:
            DataAccessError: If the query fails for any reason
        """
        try:
            return await self.executor.query(built.sql, built.params)
        except Exception as e:
            logger.error(
                "Database query error",
                operation=operation,
                error=str(e),
                exc_info=True,
            )
            raise DataAccessError(str(e)) from e

    async def get_logs(self, filters: LogFilters) -> LogListResponse:
        """
        Get one page of request logs, newest first.

        Rows with equal timestamps come back in whatever order the store uses.
        """
        logger.info(
            "Request logs requested",
            api_key=filters.api_key,
            page=filters.page,
            limit=filters.limit,
        )
        rows = await self._fetch(build_logs_query(filters), "logs")
        page = paginate(rows, filters.limit)
        return formatter.format_logs(page.items, page.has_next_page)

    async def get_channel_stats(self, api_key: str) -> List[ChannelStat]:
        """Get per-provider stats, busiest first."""
        rows = await self._fetch(build_channel_stats_query(api_key), "channel_stats")
        return formatter.format_channel_stats(rows)

    async def get_model_stats(self, api_key: str) -> List[ModelStat]:
        """Get per-model stats, busiest first."""
        rows = await self._fetch(build_model_stats_query(api_key), "model_stats")
        return formatter.format_model_stats(rows)

    async def get_overview(self, api_key: str) -> OverviewStat:
        rows = await self._fetch(build_overview_query(api_key), "overview")
        return formatter.format_overview(rows)
