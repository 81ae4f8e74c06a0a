"""
Structured logging configuration using structlog.
"""
import sys
import logging
from pathlib import Path
from typing import Any
import structlog
from structlog.types import EventDict, Processor

from usage_analytics.core.config import settings


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application context to log events."""
    event_dict["app"] = settings.app_name
    event_dict["env"] = settings.app_env
    return event_dict


def mask_api_key(value: Any) -> Any:
    """Shorten an API key to its first 8 characters."""
    if not isinstance(value, str) or len(value) <= 8:
        return value
    return f"{value[:8]}..."


def redact_api_key(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask the api_key field wherever a caller bound one."""
    if "api_key" in event_dict:
        event_dict["api_key"] = mask_api_key(event_dict["api_key"])
    return event_dict


def setup_logging() -> None:
    """
    Configure structured logging with structlog.
    Supports both JSON and text output formats.
    """
    log_file = Path(settings.log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, settings.log_level.upper()),
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(str(log_file))
        ]
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_app_context,
        redact_api_key,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_format == "json":
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ])
    else:
        processors.extend([
            structlog.processors.ExceptionRenderer(),
            structlog.dev.ConsoleRenderer(colors=settings.is_development)
        ])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structured logger
    """
    return structlog.get_logger(name)


# Initialize logging on module import
setup_logging()
