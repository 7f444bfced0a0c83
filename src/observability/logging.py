"""
Structured logging configuration using structlog.

JSON logs in production, colored console logs otherwise. Records from
stdlib ``logging`` loggers (used throughout ``src.alerts``) pass through
the same processor chain, so alert-engine messages and API request logs
share one format.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from src.config.settings import get_settings

# Third-party loggers capped at WARNING.
QUIET_LOGGERS = ("httpx", "httpcore", "aiosmtplib", "asyncio", "uvicorn.access")


def setup_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level override (e.g. "DEBUG"). Uses settings if None.
        json_logs: Force JSON (True) or console (False) rendering.
            Defaults to JSON in production only.

    Usage:
        setup_logging()
        logger = structlog.get_logger()
        logger.info("Alert triggered", alert_type="cpu_high", severity="warning")
    """
    settings = get_settings()
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs is None:
        json_logs = settings.is_production

    if json_logs:
        renderer: Processor = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route stdlib loggers through the same renderer
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name (defaults to module name)

    Returns:
        Bound logger instance
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind context variables to all subsequent log messages."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
