# =============================================================================
# rfa_archive/cli/__main__.py - Package Entry Point
# =============================================================================
#
# Enables running the CLI package itself as a module:
#     python -m rfa_archive.cli crawl -w rfa-mandarin
#
# Delegates to archive.py, which owns every subcommand.
# =============================================================================

"""Allow ``python -m rfa_archive.cli`` execution."""

from rfa_archive.cli.archive import main

main()
