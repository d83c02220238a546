"""Global structlog configuration for the command-line entry point."""
import logging
import sys

import structlog

from .config import LoggingConfig


def configure_logging(logging_config: LoggingConfig) -> None:
    """
    Configures structlog once per process. Logs go to stderr so that stdout
    only ever carries tool results.
    """
    level = getattr(logging, logging_config.level.upper(), logging.WARNING)
    processors = [
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if logging_config.format.lower() == "console":
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer(sort_keys=True)]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
