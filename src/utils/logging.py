"""Structured logging configuration for the API server.

stdlib loggers (``logging.getLogger(__name__)``) are rendered through structlog,
so every record emitted inside ``run_context`` carries the analysis run fields.
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Iterator

import structlog

NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "google_genai.models")


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """Configure structured logging for the server.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_output: JSON lines for log shipping; colored console output otherwise
    """
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*_shared_processors(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_processors(),
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper()))

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def new_run_id() -> str:
    return uuid.uuid4().hex[:8]


@contextmanager
def run_context(flow: str, target: str) -> Iterator[str]:
    """Tag log records emitted inside the block with one analysis run.

    Binds ``run_id``, ``flow`` (search, trending, subject) and ``target`` (the
    query, category or subject). Concurrent runs each see their own values.

    Yields:
        The generated run ID
    """
    run_id = new_run_id()
    tokens = structlog.contextvars.bind_contextvars(run_id=run_id, flow=flow, target=target)
    try:
        yield run_id
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
