"""Structured logging for the calculators, built on structlog over stdlib logging.

Every event carries the context bound through ``structlog.contextvars``:
``main`` binds the running subcommand and the position file, and the API
handlers bind the endpoint, so a ``config_saved`` or ``critical_rate_mixed_book``
event can be traced back to what triggered it.
"""

import logging
import os
from typing import TextIO

import structlog

# Loggers from the server stack that drown out calculator events at INFO
_NOISY_LOGGERS = ("uvicorn.access", "uvicorn.error")


def setup_logging(
    log_level: str = "INFO",
    log_format: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and route everything through one stdlib handler.

    Args:
        log_level: Root level name (DEBUG, INFO, ...).
        log_format: "json" or "console"; defaults to the LOG_FORMAT
            environment variable, then "console".
        stream: Where rendered events go. Defaults to stderr so reports
            printed on stdout stay clean.
    """
    if log_format is None:
        log_format = os.environ.get("LOG_FORMAT", "console")
    log_format = log_format.lower()

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
