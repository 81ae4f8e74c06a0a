"""
Query-string parsing for the analytics endpoints.

Parsing is lenient: unparsable numbers fall back to defaults instead of
rejecting the request. Only a missing API key is an error.
"""
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from usage_analytics.core.config import settings
from usage_analytics.core.exceptions import ValidationError

API_KEY_REQUIRED = "API Key is required"

_LEADING_INT = re.compile(r"^\s*([+-]?)0*([0-9]+)")

# Longer digit runs saturate; keeps (page - 1) * limit inside a 64-bit OFFSET
INT_CEILING = 10 ** 15


def parse_bool(value: Optional[str]) -> Optional[bool]:
    """
    Parse a tri-state boolean.

    "true" and "false" in any letter case map to True and False. Anything
    else, including None, means the filter is absent.
    """
    if value is None:
        return None
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


def parse_int(value: Optional[str], default: int) -> int:
    """Parse the leading integer of a string, e.g. "12abc" -> 12, falling back to default."""
    if value is None:
        return default
    match = _LEADING_INT.match(value)
    if not match:
        return default
    sign, digits = match.groups()
    number = INT_CEILING if len(digits) > 15 else int(digits)
    return -number if sign == "-" else number


def clamp(value: int, lower: int, upper: int) -> int:
    return min(max(lower, value), upper)


def require_api_key(params: Mapping[str, str]) -> str:
    """Return the apiKey parameter or raise ValidationError when it is missing or empty."""
    api_key = params.get("apiKey")
    if not api_key:
        raise ValidationError(API_KEY_REQUIRED)
    return api_key


@dataclass(frozen=True)
class LogFilters:
    """Validated filters for the paginated logs endpoint."""

    api_key: str
    page: int = 1
    limit: int = 30
    model: Optional[str] = None
    provider: Optional[str] = None
    status: Optional[bool] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def parse_log_filters(params: Mapping[str, str]) -> LogFilters:
    """
    Build LogFilters from raw query parameters.

    Args:
        params: Query parameters (e.g. request.query_params)

    Returns:
        Validated filter set

    Raises:
        ValidationError: If apiKey is missing
    """
    api_key = require_api_key(params)

    # Pages start at 1; lower values would produce a negative offset
    page = max(1, parse_int(params.get("page"), 1))
    limit = clamp(
        parse_int(params.get("limit"), settings.default_page_size),
        1,
        settings.max_page_size,
    )

    return LogFilters(
        api_key=api_key,
        page=page,
        limit=limit,
        model=params.get("model") or None,
        provider=params.get("provider") or None,
        status=parse_bool(params.get("status")),
    )
