"""
SQL construction for the analytics endpoints.

Every statement is parameterized. Predicates are collected as (clause, value)
pairs and rendered in order, so placeholder :pN always binds params[N - 1].
"""
from typing import Any, List, NamedTuple, Optional, Tuple

from usage_analytics.core.config import settings
from usage_analytics.core.database import bind_name
from usage_analytics.services.filters import LogFilters
from usage_analytics.services.pagination import fetch_size

PLACEHOLDER = "?"

# Success of a single joined outcome row; a missing outcome counts as failure
OUTCOME_SUCCESS = "CASE WHEN c.success = TRUE THEN 1 ELSE 0 END"
OUTCOME_FAILURE = "CASE WHEN c.success = TRUE THEN 0 ELSE 1 END"

# Per-request OR over all outcome attempts
REQUEST_SUCCESS = f"MAX({OUTCOME_SUCCESS})"

TOKEN_AND_TIMING_COLUMNS = """
          COALESCE(SUM(r.total_tokens), 0) AS total_tokens,
          COALESCE(SUM(r.prompt_tokens), 0) AS prompt_tokens,
          COALESCE(SUM(r.completion_tokens), 0) AS completion_tokens,
          COALESCE(AVG(r.process_time), 0) AS avg_process_time,
          COALESCE(AVG(r.first_response_time), 0) AS avg_first_response_time"""

LOG_COLUMNS = (
    "r.timestamp",
    "r.model",
    "r.provider",
    "r.process_time",
    "r.first_response_time",
    "r.prompt_tokens",
    "r.completion_tokens",
    "r.total_tokens",
    "r.text",
)


class BuiltQuery(NamedTuple):
    """SQL text plus the values for its placeholders, in placeholder order."""

    sql: str
    params: List[Any]


class ClauseList:
    """Accumulates clauses that each carry exactly one bound value."""

    def __init__(self) -> None:
        self._items: List[Tuple[str, Any]] = []

    def add(self, clause: str, value: Any) -> "ClauseList":
        if clause.count(PLACEHOLDER) != 1:
            raise ValueError(f"Clause must contain exactly one placeholder: {clause!r}")
        self._items.append((clause, value))
        return self

    def __bool__(self) -> bool:
        return bool(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def render(self, params: List[Any], separator: str = " AND ") -> str:
        """
        Render the clauses, appending their values to params.

        Placeholders are numbered from len(params) + 1, so lists must be
        rendered in the order they appear in the final statement.
        """
        rendered = []
        for clause, value in self._items:
            params.append(value)
            rendered.append(clause.replace(PLACEHOLDER, f":{bind_name(len(params))}"))
        return separator.join(rendered)


def bind(params: List[Any], value: Any) -> str:
    """Append a single value and return its placeholder."""
    params.append(value)
    return f":{bind_name(len(params))}"


def scope_clauses(api_key: str, endpoint: Optional[str] = None) -> ClauseList:
    """Base predicate shared by every endpoint: owning key and logical operation."""
    return (
        ClauseList()
        .add("r.api_key = ?", api_key)
        .add("r.endpoint = ?", endpoint or settings.chat_endpoint)
    )


def build_logs_query(filters: LogFilters) -> BuiltQuery:
    """
    Paginated request log query.

    Fetches limit + 1 rows so the caller can tell whether another page exists.
    """
    where = scope_clauses(filters.api_key)
    if filters.model:
        where.add("r.model = ?", filters.model)
    if filters.provider:
        where.add("r.provider = ?", filters.provider)

    having = ClauseList()
    if filters.status is not None:
        having.add(f"{REQUEST_SUCCESS} = ?", 1 if filters.status else 0)

    params: List[Any] = []
    where_sql = where.render(params)
    having_sql = f"HAVING {having.render(params)}" if having else ""
    limit_sql = bind(params, fetch_size(filters.limit))
    offset_sql = bind(params, filters.offset)

    sql = f"""
        SELECT
          r.timestamp AS timestamp,
          {REQUEST_SUCCESS} AS success,
          r.model AS model,
          r.provider AS provider,
          r.process_time AS process_time,
          r.first_response_time AS first_response_time,
          r.prompt_tokens AS prompt_tokens,
          r.completion_tokens AS completion_tokens,
          r.total_tokens AS total_tokens,
          r.text AS text
        FROM request_stats r
        LEFT JOIN channel_stats c ON r.request_id = c.request_id
        WHERE {where_sql}
        GROUP BY r.request_id, {", ".join(LOG_COLUMNS)}
        {having_sql}
        ORDER BY r.timestamp DESC
        LIMIT {limit_sql} OFFSET {offset_sql}
    """
    return BuiltQuery(sql, params)


def build_channel_stats_query(api_key: str) -> BuiltQuery:
    """
    Per-provider aggregate.

    Counts joined outcome rows, so each channel attempt is one request.
    Success comes from channel_stats.success; no outcome row is a failure.
    """
    params: List[Any] = []
    where_sql = scope_clauses(api_key).render(params)

    sql = f"""
        SELECT
          r.provider AS provider,
          COUNT(*) AS requests,
          COALESCE(SUM({OUTCOME_SUCCESS}), 0) AS successes,
          COALESCE(SUM({OUTCOME_FAILURE}), 0) AS failures,
          COALESCE(
            CAST(SUM({OUTCOME_SUCCESS}) AS FLOAT) / NULLIF(COUNT(*), 0),
            0
          ) AS success_rate,{TOKEN_AND_TIMING_COLUMNS}
        FROM request_stats r
        LEFT JOIN channel_stats c ON r.request_id = c.request_id
        WHERE {where_sql}
        GROUP BY r.provider
        ORDER BY requests DESC
    """
    return BuiltQuery(sql, params)


def build_model_stats_query(api_key: str) -> BuiltQuery:
    """Per-model aggregate counting distinct requests."""
    params: List[Any] = []
    where_sql = scope_clauses(api_key).render(params)

    sql = f"""
        SELECT
          r.model AS model,
          COUNT(DISTINCT r.request_id) AS requests,
          COALESCE(SUM({OUTCOME_SUCCESS}), 0) AS successes,
          COALESCE(SUM({OUTCOME_FAILURE}), 0) AS failures,
          COALESCE(
            CAST(SUM({OUTCOME_SUCCESS}) AS FLOAT) / NULLIF(COUNT(DISTINCT r.request_id), 0),
            0
          ) AS success_rate,{TOKEN_AND_TIMING_COLUMNS}
        FROM request_stats r
        LEFT JOIN channel_stats c ON r.request_id = c.request_id
        WHERE {where_sql}
        GROUP BY r.model
        ORDER BY requests DESC
    """
    return BuiltQuery(sql, params)


def build_overview_query(api_key: str) -> BuiltQuery:
    """Single-row totals for an API key; no outcome join."""
    params: List[Any] = []
    where_sql = scope_clauses(api_key).render(params)

    sql = f"""
        SELECT
          COUNT(DISTINCT r.request_id) AS requests,{TOKEN_AND_TIMING_COLUMNS}
        FROM request_stats r
        WHERE {where_sql}
    """
    return BuiltQuery(sql, params)
