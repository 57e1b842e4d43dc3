"""Unit tests for the structlog setup helpers."""

from __future__ import annotations

import asyncio
import logging

import structlog

from rfa_archive.utils.logging import configure_logging, crawl_context, get_logger


def test_configure_quiets_http_loggers():
    configure_logging(log_level="debug")
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING


def test_get_logger_returns_usable_logger():
    log = get_logger("rfa_archive.tests")
    log.info("logger_smoke_test", value=1)


def test_crawl_context_binds_and_unbinds_site():
    structlog.contextvars.clear_contextvars()
    with crawl_context("rfa-lao", month=3):
        assert structlog.contextvars.get_contextvars() == {"site": "rfa-lao", "month": 3}
    assert structlog.contextvars.get_contextvars() == {}


async def test_crawl_context_is_task_local():
    seen: dict[str, str] = {}

    async def _crawl(site: str) -> None:
        with crawl_context(site):
            await asyncio.sleep(0)
            seen[site] = structlog.contextvars.get_contextvars()["site"]

    await asyncio.gather(_crawl("rfa-lao"), _crawl("rfa-khmer"))
    assert seen == {"rfa-lao": "rfa-lao", "rfa-khmer": "rfa-khmer"}
