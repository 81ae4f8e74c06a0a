"""
Map query rows onto response schemas, substituting zero for missing aggregates.
"""
from typing import Any, List, Mapping, Optional, Sequence

from usage_analytics.api.schemas import (
    ChannelStat,
    LogListResponse,
    LogRow,
    ModelStat,
    OverviewStat,
)

Row = Mapping[str, Any]


def _int(value: Any) -> int:
    return int(value) if value is not None else 0


def _float(value: Any) -> float:
    return float(value) if value is not None else 0.0


def _optional_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


def _optional_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def _usage_fields(row: Row) -> dict:
    return {
        "total_tokens": _int(row["total_tokens"]),
        "prompt_tokens": _int(row["prompt_tokens"]),
        "completion_tokens": _int(row["completion_tokens"]),
        "avg_process_time": _float(row["avg_process_time"]),
        "avg_first_response_time": _float(row["avg_first_response_time"]),
    }


def _outcome_fields(row: Row) -> dict:
    return {
        "requests": _int(row["requests"]),
        "successes": _int(row["successes"]),
        "failures": _int(row["failures"]),
        "success_rate": _float(row["success_rate"]),
        **_usage_fields(row),
    }


def format_log_row(row: Row) -> LogRow:
    return LogRow(
        timestamp=row["timestamp"],
        success=bool(row["success"]),
        model=row["model"],
        provider=row["provider"],
        process_time=_optional_float(row["process_time"]),
        first_response_time=_optional_float(row["first_response_time"]),
        prompt_tokens=_optional_int(row["prompt_tokens"]),
        completion_tokens=_optional_int(row["completion_tokens"]),
        total_tokens=_optional_int(row["total_tokens"]),
        text=row["text"],
    )


def format_logs(rows: Sequence[Row], has_next_page: bool) -> LogListResponse:
    return LogListResponse(
        logs=[format_log_row(row) for row in rows],
        has_next_page=has_next_page,
    )


def format_channel_stats(rows: Sequence[Row]) -> List[ChannelStat]:
    return [ChannelStat(provider=row["provider"], **_outcome_fields(row)) for row in rows]


def format_model_stats(rows: Sequence[Row]) -> List[ModelStat]:
    return [ModelStat(model=row["model"], **_outcome_fields(row)) for row in rows]


def format_overview(rows: Sequence[Row]) -> OverviewStat:
    """First row as totals; an empty result becomes an all-zero record."""
    if not rows:
        return OverviewStat()
    row = rows[0]
    return OverviewStat(requests=_int(row["requests"]), **_usage_fields(row))
