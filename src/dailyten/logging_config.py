"""Structured logging for the API and the scheduler worker."""

import logging

import structlog

from dailyten.config import Settings

# httpx logs every Bot API request URL at INFO, and those URLs embed the bot token.
QUIET_LOGGERS = ("httpx", "httpcore", "telegram")


def setup_logging(settings: Settings, component: str = "api") -> None:
    """Configure structlog and the stdlib root logger.

    `component` ("api" or "worker") is bound into every structlog event so the
    two processes can share one log stream.
    """
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(component=component, environment=settings.environment)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
