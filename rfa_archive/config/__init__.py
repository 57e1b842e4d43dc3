"""Configuration module - exports Settings, load_config and the site table."""

from rfa_archive.config.loader import load_config
from rfa_archive.config.settings import Settings
from rfa_archive.config.sites import SITE_LIST, SITE_SEGMENTS, resolve_sites

__all__ = ["SITE_LIST", "SITE_SEGMENTS", "Settings", "load_config", "resolve_sites"]
