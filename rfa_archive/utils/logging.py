"""Structured logging for the crawler, the CLI and the read API.

One processor chain feeds two renderers: a coloured console renderer for
interactive crawls and a JSON renderer when ``APP_ENV=production`` (or
``json_output=True``).  Stdlib loggers (uvicorn, httpx, aiosqlite) are
routed through the same chain so a serving process writes one format.

Crawl events carry the unit they belong to through context variables;
see :func:`crawl_context`.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from typing import Iterator

import structlog

# Third-party loggers that are too chatty at INFO during a crawl.
_QUIET_LOGGERS: dict[str, int] = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "aiosqlite": logging.WARNING,
}


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog and the stdlib root logger.

    Parameters
    ----------
    log_level:
        Level name (``DEBUG``, ``INFO``, ``WARNING``, ``ERROR``).
    json_output:
        Force JSON lines.  Otherwise JSON is used only in production.
    """
    level = log_level.upper()
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    processors = _shared_processors()

    renderer: structlog.types.Processor
    if use_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger bound to *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)


@contextmanager
def crawl_context(site: str, **extra: object) -> Iterator[None]:
    """Bind ``site`` (and any *extra* keys) to every event in the block.

    Context variables are per-task under asyncio, so sites crawled in
    parallel keep their own bindings.
    """
    with structlog.contextvars.bound_contextvars(site=site, **extra):
        yield
