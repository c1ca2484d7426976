"""Structured logging setup. Everything goes to stderr; stdout is reserved for the report."""

import logging
import sys

import structlog


def configure_logging(log_level: str = "WARNING", log_format: str = "text") -> None:
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.WARNING

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ]
    else:
        # ConsoleRenderer formats exceptions itself
        processors += [
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=False)
        ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
