"""Archive store providers.

SQLiteArchiveStore keeps the three archive partitions in one SQLite file.
Every partition is a WITHOUT ROWID table keyed by a BLOB, so scans come
back in byte order exactly as an embedded KV engine would return them.
"""

from rfa_archive.providers.store.sqlite_archive_store import (
    SQLiteArchiveStore,
    prefix_upper_bound,
)

__all__ = ["SQLiteArchiveStore", "prefix_upper_bound"]
