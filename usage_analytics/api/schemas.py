"""
API response schemas using Pydantic models.

Fields are declared in snake_case and serialized in camelCase.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that serializes field names as camelCase."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )


# ============================================================================
# Request Log Schemas
# ============================================================================

class LogRow(CamelModel):
    """A single request as shown in the log table."""
    timestamp: Optional[datetime] = None
    success: bool = False
    model: Optional[str] = None
    provider: Optional[str] = None
    process_time: Optional[float] = None
    first_response_time: Optional[float] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    text: Optional[str] = None


class LogListResponse(CamelModel):
    """One page of request logs."""
    logs: List[LogRow]
    has_next_page: bool


# ============================================================================
# Statistics Schemas
# ============================================================================

class ChannelStat(CamelModel):
    """Usage aggregated per upstream provider."""
    provider: Optional[str] = None
    requests: int = 0
    successes: int = 0
    failures: int = 0
    success_rate: float = 0
    total_tokens: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    avg_process_time: float = 0
    avg_first_response_time: float = 0


class ModelStat(CamelModel):
    """Usage aggregated per model."""
    model: Optional[str] = None
    requests: int = 0
    successes: int = 0
    failures: int = 0
    success_rate: float = 0
    total_tokens: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    avg_process_time: float = 0
    avg_first_response_time: float = 0


class OverviewStat(CamelModel):
    """Usage totals for an API key."""
    requests: int = 0
    total_tokens: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    avg_process_time: float = 0
    avg_first_response_time: float = 0


# ============================================================================
# Error Response Schemas
# ============================================================================

class ErrorResponse(BaseModel):
    """Error response body."""
    error: str
    details: Optional[str] = None
