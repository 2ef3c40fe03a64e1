"""Structured logging setup built on structlog.

Call ``configure_logging`` once at startup; everything else uses
``get_logger(__name__)`` and logs an event string plus keyword context::

    log = get_logger(__name__)
    log.info("submission recorded", identity=identity, count=3)

Debug mode renders colored console lines, otherwise one JSON object per line.
"""

import logging
import sys
from contextvars import ContextVar
from typing import Optional

import structlog
from structlog.typing import Processor

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def configure_logging(log_level: str = "INFO", debug: bool = False) -> None:
    """Configure structlog and the stdlib root logger."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        final_processor: Processor = structlog.dev.ConsoleRenderer(colors=True)
    else:
        final_processor = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # Third-party libraries (uvicorn, sqlalchemy) still log through stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)


def get_logger(name: Optional[str] = None):
    """Get a structlog logger bound to a module name."""
    logger = structlog.get_logger()
    if name:
        return logger.bind(logger=name)
    return logger


def set_request_id(request_id: Optional[str]) -> None:
    """Set the request id for the current context and bind it to log lines."""
    _request_id.set(request_id)
    structlog.contextvars.clear_contextvars()
    if request_id:
        structlog.contextvars.bind_contextvars(request_id=request_id)


def get_request_id() -> Optional[str]:
    """Get the request id of the current context, if any."""
    return _request_id.get()
