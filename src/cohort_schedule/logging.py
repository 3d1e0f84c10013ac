"""structlog setup for the engine and the CLI.

Logs are written to stderr (stdout is reserved for CLI results) as JSON in
production or as console lines in development. Modules log event names
with keyword context through get_logger().
"""

import logging
import sys
from typing import TextIO

import structlog

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("aiohttp.access", "aiohttp.client", "asyncio")


def setup_logging(
    json_output: bool = False, log_level: str = "INFO", stream: TextIO | None = None
) -> None:
    """Configure structlog processors and the stdlib bridge.

    Args:
        json_output: Render JSON lines instead of console output.
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        stream: Destination; stderr when None.
    """
    stream = stream or sys.stderr
    level = getattr(logging, log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers = [logging.StreamHandler(stream)]
    root.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_operation(command: str, **context) -> None:
    """Attach the running command (and e.g. its partition) to every later log line."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(command=command, **context)


def get_logger(name: str) -> structlog.BoundLogger:
    """Logger bound with the module name (pass __name__)."""
    return structlog.get_logger(name)
