"""
Main FastAPI application entry point.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from usage_analytics.core.config import settings
from usage_analytics.core.database import close_db, init_db
from usage_analytics.core.exceptions import AnalyticsError
from usage_analytics.core.logger import get_logger
from usage_analytics.api.middleware import setup_middleware
from usage_analytics.api.routes import logs, stats

logger = get_logger(__name__)


# ============================================================================
# Application Lifespan
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info("Starting usage analytics API")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.debug}")

    if settings.database_create_tables:
        try:
            await init_db()
            logger.info("Database tables created")
        except Exception as e:
            logger.error(f"Failed to initialize database: {str(e)}", exc_info=True)
            raise

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down usage analytics API")
    await close_db()


# ============================================================================
# Error Handlers
# ============================================================================

async def analytics_error_handler(request: Request, exc: AnalyticsError):
    """Render validation and data-access errors as {error, details?}."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def not_found_handler(request: Request, exc):
    """Handle 404 errors."""
    return JSONResponse(
        status_code=404,
        content={
            "error": "Not found",
            "details": f"The requested resource was not found: {request.url.path}",
        }
    )


async def method_not_allowed_handler(request: Request, exc):
    """Handle 405 errors."""
    return JSONResponse(
        status_code=405,
        content={
            "error": "Method not allowed",
            "details": f"Method {request.method} not allowed for {request.url.path}",
        }
    )


# ============================================================================
# Application Factory
# ============================================================================

def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="Read-only usage analytics over proxied chat completion requests",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan
    )

    setup_middleware(app)

    app.add_exception_handler(AnalyticsError, analytics_error_handler)
    app.add_exception_handler(404, not_found_handler)
    app.add_exception_handler(405, method_not_allowed_handler)

    app.include_router(logs.router, prefix="/api")
    app.include_router(stats.router, prefix="/api")

    logger.info("Routes registered")

    return app


# ============================================================================
# Application Instance
# ============================================================================

app = create_app()


# ============================================================================
# Root Endpoints
# ============================================================================

@app.get("/api", tags=["root"])
@app.get("/api/", tags=["root"])
async def api_info():
    """API information endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "docs": "/docs" if settings.debug else "disabled",
        "endpoints": [
            "/api/logs",
            "/api/stats/channels",
            "/api/stats/models",
            "/api/stats/overview",
        ],
    }


@app.get("/health", tags=["root"])
@app.get("/healthz", tags=["root"])
async def health_check():
    """Health check endpoint for load balancers."""
    return {
        "status": "healthy",
        "service": settings.app_name
    }


@app.get("/version", tags=["root"])
async def version():
    """Version information."""
    return {
        "version": settings.app_version,
        "environment": settings.environment
    }


# ============================================================================
# Development Server
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "usage_analytics.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
