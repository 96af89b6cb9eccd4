"""
Structured Logging for the Poker Cashier.

Stdlib loggers (``logging.getLogger("SessionLedger")`` and friends) and
structlog event loggers share one output pipeline: JSON lines in production,
colored console output while developing. Event context bound per inbound
event (channel, user, event id) is merged into every structlog record.

Author: Poker Cashier Team
Version: 1.0.0
"""

import logging
import sys
from typing import List, Optional

import structlog

SERVICE_NAME = "poker-cashier"

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("aiohttp.access", "asyncio")


def _build_processors(log_format: str) -> List:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors.append(lambda _, __, event_dict: {"service": SERVICE_NAME, **event_dict})
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    return processors


def configure_logging(log_level: str = "INFO", log_format: str = "console", log_file: Optional[str] = None):
    """
    Configure stdlib logging and structlog together.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        log_format: 'json' for production, 'console' for development
        log_file: Optional file that receives a copy of every record (appended)
    """
    level = getattr(logging, log_level.upper())

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        handlers=handlers,
        level=level,
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=_build_processors(log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None):
    """
    Get a structured event logger.

    Example:
        log = get_logger("croupier.events")
        log.info("tip_received", amount_wei=10**16)
    """
    return structlog.get_logger(name or SERVICE_NAME)


def bind_context(**kwargs):
    """
    Bind context variables to all subsequent structlog records in this task.

    Example:
        bind_context(channel_id="channel-1", user_id="0xabc")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys):
    structlog.contextvars.unbind_contextvars(*keys)
