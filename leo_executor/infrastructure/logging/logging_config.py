"""
Structured logging configuration for leo-executor.

Configures structlog for JSON or console logging with execution context.
"""

import logging
import sys
from typing import Any, Optional

import structlog


def configure_logging(log_level: str = "INFO", log_format: str = "text") -> None:
    """
    Configure structlog.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: "json" for structured output, "text" for a console renderer
    """
    # Configure standard logging to use structlog
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None, execution_id: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance with optional context.

    Args:
        name: Logger name, usually __name__
        execution_id: Execution identifier for tracing

    Returns:
        Configured logger instance
    """
    context: dict[str, Any] = {}
    if execution_id:
        context["execution_id"] = execution_id

    return structlog.get_logger(name, **context)
