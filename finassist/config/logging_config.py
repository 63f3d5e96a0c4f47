"""
Logging configuration.

structlog is routed through the standard library so that log levels are
decided by `logging`. With no handler configured, debug and info events
from the analyses are dropped instead of being printed to stdout.

Applied once when the `finassist` package is imported. Applications that
want the events call logging.basicConfig (or install their own handlers)
and pick a level.
"""

import structlog


def configure_logging() -> None:
    """Configure structlog for local logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
