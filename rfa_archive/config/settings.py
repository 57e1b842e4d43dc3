"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads two sources (in priority order):
#
#   1. **Environment variables** - e.g. DATA_DIR=/srv/rfa_data
#   2. **.env file** - key=value lines in the project root .env file
#
# Field ``data_dir`` maps to env var ``DATA_DIR``; matching is
# case-insensitive.  CLI flags override both: the CLI builds a Settings
# instance and passes explicit values as keyword arguments.
#
# Settings are built ONCE at startup and handed to the services that need
# them.  Nothing in the package reads settings from a module global.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """RFA archive settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Storage ===
    # Holds rfa.db (the archive store) and imgs/ (cached image blobs).
    data_dir: str = "rfa_data"
    db_filename: str = "rfa.db"
    image_dirname: str = "imgs"

    # === Crawl ===
    # Comma-separated website ids; empty string = every known site.
    sites: str = ""
    proxy: str = ""
    scrape_delay: float = Field(default=0.0, ge=0.0)
    http_timeout: float = Field(default=30.0, gt=0.0)
    max_retries: int = Field(default=10, ge=0)
    site_concurrency: int = Field(default=1, ge=1)

    # === Serving ===
    app_host: str = "127.0.0.1"
    app_port: int = 3333
    app_env: str = "development"
    log_level: str = "INFO"

    def site_selection(self) -> list[str]:
        """Split the comma-separated ``sites`` value into a list."""
        return [s.strip() for s in self.sites.split(",") if s.strip()]

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def db_path(self) -> Path:
        return self.data_path / self.db_filename

    @property
    def image_dir(self) -> Path:
        return self.data_path / self.image_dirname
