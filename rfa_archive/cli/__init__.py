# =============================================================================
# rfa_archive/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# One command-line tool, ``archive.py``, with four subcommands:
#
#   crawl   Walk (site, month) units and ingest them into rfa_data/rfa.db,
#           caching images under rfa_data/imgs/.  Resumable: completed
#           months carry a marker and are skipped on the next run.
#   status  Count completion markers per site.
#   verify  Confirm every index entry resolves to a stored article.
#   serve   Run the read API (FastAPI + uvicorn) over an existing archive.
#
# Architecture Notes:
#   - argparse, not Click/Typer.
#   - Heavy imports (providers, services, uvicorn) are deferred inside the
#     handlers so ``--help`` stays fast.
#   - Handlers build their own dependencies; the CLI runs as a one-shot
#     process, not a long-lived server (except ``serve``).
# =============================================================================

"""Command-line tools for the RFA archive.

- ``python -m rfa_archive.cli crawl`` - crawl the story feed.
- ``python -m rfa_archive.cli status`` - show crawl progress.
- ``python -m rfa_archive.cli verify`` - check the index invariant.
- ``python -m rfa_archive.cli serve`` - serve the read API.
"""
