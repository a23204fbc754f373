"""structlog setup.

Learn: Every module does `logger = structlog.get_logger()` and logs
dotted event names with keyword context. merge_contextvars picks up
the request_id bound by RequestIdMiddleware, so all lines emitted
while serving a request carry it.
"""

import logging

import structlog

from tapboard.config import Settings


def configure_logging(settings: Settings) -> None:
    """Console output in development, JSON lines everywhere else."""
    level = logging.DEBUG if settings.debug else logging.INFO

    if settings.environment == "development":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
