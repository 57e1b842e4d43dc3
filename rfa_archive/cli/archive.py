"""CLI for crawling the RFA story feed and serving the archive.

Usage::

    # Crawl every site, 1998-01 .. 2025-09 (resumes from completion markers)
    python -m rfa_archive.cli crawl

    # Crawl two sites through a proxy into a custom data directory
    python -m rfa_archive.cli crawl -w rfa-mandarin,rfa-korean --proxy http://127.0.0.1:8089 -o /srv/rfa

    # Narrow the month window and throttle requests
    python -m rfa_archive.cli crawl -w rfa-lao --start 2020-01 --end 2020-12 --delay 1.5

    # Show completed months per site
    python -m rfa_archive.cli status

    # Check that every index entry resolves to a stored article
    python -m rfa_archive.cli verify

    # Serve the read API on 127.0.0.1:3333
    python -m rfa_archive.cli serve -a 0.0.0.0:3333 -d /srv/rfa
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from pydantic import ValidationError

from rfa_archive.config.settings import Settings
from rfa_archive.models.crawl import UnitResult, UnitStatus
from rfa_archive.utils.errors import ConfigurationError
from rfa_archive.utils.logging import configure_logging

_DEFAULT_CONFIG = "config/config.yaml"


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _settings_from_args(args: argparse.Namespace) -> Settings:
    """Build Settings, letting explicit CLI flags override the environment."""
    overrides: dict[str, Any] = {}
    data_dir = getattr(args, "output", None) or getattr(args, "data_dir", None)
    if data_dir:
        overrides["data_dir"] = data_dir
    if getattr(args, "sites", None):
        overrides["sites"] = args.sites
    if getattr(args, "proxy", None):
        overrides["proxy"] = args.proxy
    if getattr(args, "delay", None) is not None:
        overrides["scrape_delay"] = args.delay
    if getattr(args, "concurrency", None) is not None:
        overrides["site_concurrency"] = args.concurrency
    address = getattr(args, "address", None)
    if address:
        host, _, port = address.rpartition(":")
        if not host or not port.isdigit():
            raise ConfigurationError(f"Expected HOST:PORT, got {address!r}")
        overrides["app_host"] = host
        overrides["app_port"] = int(port)
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigurationError(f"Invalid settings: {problems}") from exc


def _setup(args: argparse.Namespace) -> tuple[Settings, dict[str, Any]]:
    from rfa_archive.config.loader import load_config

    settings = _settings_from_args(args)
    configure_logging(
        log_level=settings.log_level,
        json_output=(settings.app_env == "production"),
    )
    return settings, load_config(getattr(args, "config", _DEFAULT_CONFIG), settings)


def _print_unit(result: UnitResult) -> None:
    if result.status == UnitStatus.SKIPPED:
        return
    line = f"  [{result.label}] {result.status.value}"
    if result.status == UnitStatus.INGESTED:
        line += f" {result.articles:,} articles, {result.images_downloaded} images"
        if result.images_failed:
            line += f" ({result.images_failed} failed)"
    elif result.status == UnitStatus.FAILED:
        line += f" {result.error}"
    print(line)


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_crawl(args: argparse.Namespace) -> int:
    """Crawl the selected sites month by month into the archive."""
    from rfa_archive.config.sites import resolve_sites
    from rfa_archive.providers.source.rfa_feed_provider import RFAFeedProvider, build_http_client
    from rfa_archive.providers.store.sqlite_archive_store import SQLiteArchiveStore
    from rfa_archive.services.crawl_scheduler import CrawlScheduler, parse_month
    from rfa_archive.services.crawl_service import CrawlService
    from rfa_archive.services.image_cache import ImageCache

    settings, config = _setup(args)
    crawl_cfg = config["crawl"]
    source_cfg = config["source"]

    sites = resolve_sites(config["crawl"].get("sites"))
    start = parse_month(args.start or crawl_cfg["start"])
    end = parse_month(args.end or crawl_cfg["end"])

    print(f"Crawling {len(sites)} site(s), {start[0]}-{start[1]:02d} .. {end[0]}-{end[1]:02d}")
    print(f"Data directory: {settings.data_path}")
    if source_cfg.get("proxy"):
        print(f"Proxy: {source_cfg['proxy']}")
    print()

    async with SQLiteArchiveStore(settings.db_path) as store, build_http_client(
        proxy=source_cfg.get("proxy"),
        timeout=source_cfg["timeout"],
        user_agent=source_cfg["user_agent"],
    ) as client:
        provider = RFAFeedProvider(
            http_client=client,
            base_url=source_cfg["base_url"],
            feed_path=source_cfg["feed_path"],
            scrape_delay=source_cfg["scrape_delay"],
            max_retries=source_cfg["max_retries"],
        )
        service = CrawlService(
            store=store,
            source=provider,
            image_cache=ImageCache(provider, settings.image_dir),
            page_size=crawl_cfg["page_size"],
            max_extra_pages=crawl_cfg["max_extra_pages"],
        )
        scheduler = CrawlScheduler(
            service,
            start=start,
            end=end,
            site_concurrency=crawl_cfg["site_concurrency"],
            on_unit_complete=_print_unit,
        )
        report = await scheduler.run(sites)

    print()
    print(
        f"Units: {len(report.results):,}  ingested={report.count(UnitStatus.INGESTED):,}  "
        f"skipped={report.count(UnitStatus.SKIPPED):,}  empty={report.count(UnitStatus.EMPTY):,}  "
        f"failed={len(report.failed):,}"
    )
    print(f"Articles stored this run: {report.articles:,}")
    for failure in report.failed:
        print(f"  FAILED {failure.label}: {failure.error}", file=sys.stderr)
    return 1 if report.failed else 0


async def _handle_status(args: argparse.Namespace) -> int:
    """Show completed months per site."""
    from rfa_archive.providers.store.sqlite_archive_store import SQLiteArchiveStore
    from rfa_archive.services.crawl_scheduler import parse_month, site_progress

    settings, config = _setup(args)
    if not settings.db_path.exists():
        print(f"No archive at {settings.db_path} (crawl first).")
        return 1

    start = parse_month(config["crawl"]["start"])
    end = parse_month(config["crawl"]["end"])

    async with SQLiteArchiveStore(settings.db_path, read_only=True) as store:
        rows = await site_progress(store, config["crawl"].get("sites"), start, end)

    print("RFA Crawl Progress")
    print("=" * 58)
    print(f"{'Site':<20} {'Months':>12} {'Last':>10} {'Done':>6}")
    print("-" * 58)
    for row in rows:
        months = f"{row.completed_months}/{row.total_months}"
        done = "YES" if row.complete else "no"
        print(f"{row.site:<20} {months:>12} {row.last_completed or '-':>10} {done:>6}")
    return 0


async def _handle_verify(args: argparse.Namespace) -> int:
    """Check that every index entry has a matching stored article."""
    from rfa_archive.providers.store.sqlite_archive_store import SQLiteArchiveStore
    from rfa_archive.services.archive_reader import ArchiveReader

    settings, _ = _setup(args)
    if not settings.db_path.exists():
        print(f"No archive at {settings.db_path} (crawl first).")
        return 1

    async with SQLiteArchiveStore(settings.db_path, read_only=True) as store:
        check = await ArchiveReader(store).verify_index()

    print(f"Index entries: {check.index_entries:,}")
    print(f"Articles:      {check.articles:,}")
    if check.unknown_site_entries:
        print(f"Entries under unknown site code: {check.unknown_site_entries:,}")
    if check.ok:
        print("OK: every index entry resolves to an article.")
        return 0
    print(f"{len(check.orphans):,} orphaned index entries:", file=sys.stderr)
    for path in check.orphans[:50]:
        print(f"  {path}", file=sys.stderr)
    return 1


def _handle_serve(args: argparse.Namespace) -> int:
    """Serve the read API until interrupted."""
    from rfa_archive.main import run

    settings, config = _setup(args)
    if not settings.db_path.exists():
        print(f"No archive at {settings.db_path} (crawl first).", file=sys.stderr)
        return 1
    print(f"Serving {settings.data_path} on http://{settings.app_host}:{settings.app_port}")
    run(settings, config)
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the archive CLI."""
    from rfa_archive.config.sites import SITE_LIST

    parser = argparse.ArgumentParser(
        prog="python -m rfa_archive.cli",
        description="Crawl Radio Free Asia articles into a local archive and browse it.",
    )
    parser.add_argument(
        "--config",
        default=_DEFAULT_CONFIG,
        help=f"YAML config file (default: {_DEFAULT_CONFIG})",
    )
    subparsers = parser.add_subparsers(dest="command", help="Archive commands")

    # -- crawl --
    crawl_parser = subparsers.add_parser("crawl", help="Fetch articles, images and index entries")
    crawl_parser.add_argument(
        "-w",
        "--sites",
        default="",
        help=f"Comma-separated websites (default: all of {','.join(SITE_LIST)})",
    )
    crawl_parser.add_argument("--proxy", default=None, help="Proxy URL, e.g. http://127.0.0.1:8089")
    crawl_parser.add_argument("-o", "--output", default=None, help="Data directory (default: rfa_data)")
    crawl_parser.add_argument("--start", default=None, help="First month, YYYY-MM (default: 1998-01)")
    crawl_parser.add_argument("--end", default=None, help="Last month, YYYY-MM (default: 2025-09)")
    crawl_parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds between requests (default: 0)",
    )
    crawl_parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Sites crawled in parallel (default: 1)",
    )

    # -- status --
    status_parser = subparsers.add_parser("status", help="Show completed months per site")
    status_parser.add_argument("-o", "--output", default=None, help="Data directory")

    # -- verify --
    verify_parser = subparsers.add_parser("verify", help="Check index entries against articles")
    verify_parser.add_argument("-o", "--output", default=None, help="Data directory")

    # -- serve --
    serve_parser = subparsers.add_parser("serve", help="Serve the read API")
    serve_parser.add_argument("-a", "--address", default=None, help="HOST:PORT (default: 127.0.0.1:3333)")
    serve_parser.add_argument("-d", "--data-dir", default=None, help="Data directory (default: rfa_data)")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the archive tool."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "crawl":
            exit_code = asyncio.run(_handle_crawl(args))
        elif args.command == "status":
            exit_code = asyncio.run(_handle_status(args))
        elif args.command == "verify":
            exit_code = asyncio.run(_handle_verify(args))
        elif args.command == "serve":
            exit_code = _handle_serve(args)
        else:
            parser.print_help()
            exit_code = 1
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 2

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
