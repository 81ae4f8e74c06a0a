"""
FastAPI middleware for request logging, error handling, and CORS.
"""
import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware

from usage_analytics.core.logger import get_logger
from usage_analytics.core.config import settings

logger = get_logger(__name__)

INTERNAL_ERROR = "Internal server error"


# ============================================================================
# Request Logging Middleware
# ============================================================================

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all incoming requests and responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and log details.

        Args:
            request: Incoming request
            call_next: Next middleware/endpoint

        Returns:
            Response from endpoint
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.time()

        logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )

        try:
            response = await call_next(request)

            duration_ms = int((time.time() - start_time) * 1000)

            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = str(duration_ms)

            return response

        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)

            logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                duration_ms=duration_ms,
                exc_info=True
            )

            # Re-raise to be handled by error handler
            raise

        finally:
            structlog.contextvars.unbind_contextvars("request_id")


# ============================================================================
# Error Handling Middleware
# ============================================================================

def internal_error_body(error: Exception) -> dict:
    """Generic 500 body, with the exception message as details when it has one."""
    body = {"error": INTERNAL_ERROR}
    message = str(error)
    if message:
        body["details"] = message
    return body


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware to turn uncaught exceptions into a JSON 500 response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and handle errors.

        Args:
            request: Incoming request
            call_next: Next middleware/endpoint

        Returns:
            Response from endpoint or error response
        """
        try:
            return await call_next(request)

        except Exception as e:
            request_id = getattr(request.state, "request_id", None)

            logger.error(
                f"Unhandled exception: {str(e)}",
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
                exc_info=True
            )

            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=internal_error_body(e),
                headers={
                    "X-Request-ID": request_id or "unknown"
                }
            )


# ============================================================================
# CORS Configuration
# ============================================================================

def setup_cors(app):
    """
    Setup CORS middleware.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )

    logger.info("CORS configured", allowed_origins=settings.cors_origins_list)


# ============================================================================
# Middleware Setup
# ============================================================================

def setup_middleware(app):
    """
    Setup all middleware for the application.

    Args:
        app: FastAPI application instance
    """
    # Each add_middleware call wraps the previous ones, so request logging
    # sees the response produced by error handling.
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    setup_cors(app)

    logger.info("Middleware setup completed")
