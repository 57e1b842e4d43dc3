"""Offline archive of Radio Free Asia articles.

A resumable month-by-month crawler writes articles, a chronological
secondary index, and completion markers into an ordered key-value store;
a read API serves newest-first site and section listings from it.
"""

__version__ = "0.1.0"
