"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. _DEFAULTS            - Built-in values so a missing file still works
#   2. config/config.yaml   - Static defaults checked into the repo
#   3. .env / environment   - Read through Settings
#
# _deep_merge does recursive dict merging:
#   base = {"crawl": {"start": "1998-01"}}
#   overrides = {"crawl": {"end": "2025-09"}}
#   result = {"crawl": {"start": "1998-01", "end": "2025-09"}}
# ──────────────────────────────────────────────────────────────────────
"""

import copy
from pathlib import Path

import yaml

from rfa_archive.config.settings import Settings

_DEFAULTS: dict = {
    "crawl": {
        "start": "1998-01",
        "end": "2025-09",
        "page_size": 100,
        "max_extra_pages": 2,
    },
    "source": {
        "base_url": "https://www.rfa.org",
        "feed_path": "/pf/api/v3/content/fetch/story-feed-query",
        "user_agent": "rfa-archive/0.1 (news archive builder)",
    },
    "reader": {
        "page_size": 20,
        "section_order": "chronological",
    },
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is read otherwise.

    Returns:
        Fully resolved configuration dictionary.
    """
    config = copy.deepcopy(_DEFAULTS)

    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
        _deep_merge(config, yaml_config)

    if settings is None:
        settings = Settings()
    env_overrides = {
        "source": {
            "proxy": settings.proxy or None,
            "timeout": settings.http_timeout,
            "max_retries": settings.max_retries,
            "scrape_delay": settings.scrape_delay,
        },
        "crawl": {
            "sites": settings.site_selection(),
            "site_concurrency": settings.site_concurrency,
        },
        "storage": {
            "data_dir": str(settings.data_path),
            "db_path": str(settings.db_path),
            "image_dir": str(settings.image_dir),
        },
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(config, env_overrides)
    return config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
