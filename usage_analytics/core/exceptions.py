"""
Exception types translated into HTTP error responses.
"""
from typing import Optional


class AnalyticsError(Exception):
    """Base class for errors that map to a JSON error body."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, details: Optional[str] = None):
        super().__init__(details or self.message)
        self.details = details

    def to_dict(self) -> dict:
        """Render as the {error, details?} body."""
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AnalyticsError):
    """A required request parameter is missing or invalid."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__()
        self.message = message
        self.args = (message,)


class DataAccessError(AnalyticsError):
    """Executing a query against the usage store failed."""

    status_code = 500
    message = "Database query failed"
