"""SQLite-backed ordered key-value archive store.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing IArchiveStore).
# Pattern: Adapter - wraps SQLite behind the IArchiveStore ABC so the
#          crawler and reader only ever see get / put / batch / scan.
#
# Database: ``<data_dir>/rfa.db``.  Each partition is a ``WITHOUT ROWID``
# table whose primary key is a BLOB, i.e. a B-tree clustered on the raw
# key bytes.  SQLite compares BLOBs with memcmp, so ``ORDER BY key`` is
# plain lexicographic byte order and a prefix scan is a bounded range
# scan over the clustered index:
#
#     key >= prefix AND key < prefix_upper_bound(prefix)
#
# Uses ``aiosqlite`` for async I/O and ``PRAGMA journal_mode=WAL`` so a
# read-only serving process can scan while the crawler writes.
# Batches run inside ``BEGIN IMMEDIATE ... COMMIT``; any failure rolls the
# whole batch back.
# Sites crawled in parallel share one connection, so a store-wide
# asyncio.Lock serializes batches from BEGIN to COMMIT or ROLLBACK.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from rfa_archive.interfaces.archive_store import IArchiveStore, Partition, WriteBatch, as_key
from rfa_archive.utils.errors import ConfigurationError, StorageCommitError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("rfa_data/rfa.db")

# ── Schema DDL ────────────────────────────────────────────────────────

_CREATE_PARTITION = """\
CREATE TABLE IF NOT EXISTS {table} (
    key   BLOB PRIMARY KEY,
    value BLOB NOT NULL
) WITHOUT ROWID;
"""

# ── DML ───────────────────────────────────────────────────────────────

_UPSERT = """\
INSERT INTO {table} (key, value) VALUES (?, ?)
ON CONFLICT(key) DO UPDATE SET value = excluded.value;
"""

_SELECT_VALUE = "SELECT value FROM {table} WHERE key = ?;"

_EXISTS = "SELECT 1 FROM {table} WHERE key = ? LIMIT 1;"


def prefix_upper_bound(prefix: bytes) -> bytes | None:
    """Smallest key greater than every key starting with *prefix*.

    Returns None when no such bound exists (empty or all-0xff prefix),
    in which case the scan is open-ended.
    """
    trimmed = prefix.rstrip(b"\xff")
    if not trimmed:
        return None
    return trimmed[:-1] + bytes([trimmed[-1] + 1])


class SQLiteArchiveStore(IArchiveStore):
    """Ordered KV archive over a single SQLite file.

    Parameters
    ----------
    db_path:
        Location of the database file.
    read_only:
        Open with ``mode=ro`` for serving processes; no DDL is issued and
        every write raises.
    """

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH, read_only: bool = False) -> None:
        self._db_path = Path(db_path)
        self._read_only = read_only
        self._db: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open the connection and create partitions if they don't exist."""
        if self._db is not None:
            return

        if self._read_only:
            if not self._db_path.exists():
                raise ConfigurationError(
                    f"Archive database not found: {self._db_path}",
                    provider_name=self.get_provider_name(),
                )
            self._db = await aiosqlite.connect(
                f"file:{self._db_path}?mode=ro", uri=True, isolation_level=None
            )
            logger.info("archive_store_opened", path=str(self._db_path), read_only=True)
            return

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        # Autocommit mode: batches manage their own BEGIN/COMMIT.
        self._db = await aiosqlite.connect(str(self._db_path), isolation_level=None)
        await self._db.execute("PRAGMA journal_mode=WAL;")
        await self._db.execute("PRAGMA synchronous=NORMAL;")
        for partition in Partition:
            await self._db.execute(_CREATE_PARTITION.format(table=partition.value))
        logger.info("archive_store_opened", path=str(self._db_path), read_only=False)

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> SQLiteArchiveStore:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def get_provider_name(self) -> str:
        return "sqlite_archive"

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("SQLiteArchiveStore.initialize() has not been awaited")
        return self._db

    def _check_writable(self) -> None:
        if self._read_only:
            raise StorageCommitError(
                "Archive store is open read-only", provider_name=self.get_provider_name()
            )

    # ── Point operations ───────────────────────────────────────────────

    async def get(self, partition: Partition, key: bytes | str) -> bytes | None:
        cursor = await self._conn().execute(
            _SELECT_VALUE.format(table=partition.value), (as_key(key),)
        )
        row = await cursor.fetchone()
        await cursor.close()
        return bytes(row[0]) if row is not None else None

    async def contains(self, partition: Partition, key: bytes | str) -> bool:
        cursor = await self._conn().execute(_EXISTS.format(table=partition.value), (as_key(key),))
        row = await cursor.fetchone()
        await cursor.close()
        return row is not None

    async def put(self, partition: Partition, key: bytes | str, value: bytes | str = b"") -> None:
        batch = WriteBatch()
        batch.put(partition, key, value)
        await self.write_batch(batch)

    # ── Batches ────────────────────────────────────────────────────────

    async def write_batch(self, batch: WriteBatch) -> None:
        """Commit every put in one transaction; roll back on any failure."""
        self._check_writable()
        if not batch.puts:
            return

        db = self._conn()
        async with self._write_lock:
            try:
                await db.execute("BEGIN IMMEDIATE;")
                for partition, key, value in batch.puts:
                    await db.execute(_UPSERT.format(table=partition.value), (key, value))
                await db.execute("COMMIT;")
            except aiosqlite.Error as exc:
                await self._rollback(db)
                logger.error("archive_batch_failed", puts=len(batch), error=str(exc))
                raise StorageCommitError(
                    f"Batch of {len(batch)} puts failed: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc

    async def _rollback(self, db: aiosqlite.Connection) -> None:
        if not db.in_transaction:
            return
        try:
            await db.execute("ROLLBACK;")
        except aiosqlite.Error as exc:
            logger.error("archive_rollback_failed", error=str(exc))
            raise StorageCommitError(
                f"Rollback failed: {exc}", provider_name=self.get_provider_name()
            ) from exc

    # ── Ordered scans ──────────────────────────────────────────────────

    @staticmethod
    def _range_clause(
        prefix: bytes, match_at: tuple[int, bytes] | None
    ) -> tuple[str, list[Any]]:
        conditions: list[str] = []
        params: list[Any] = []
        if prefix:
            conditions.append("key >= ?")
            params.append(prefix)
            upper = prefix_upper_bound(prefix)
            if upper is not None:
                conditions.append("key < ?")
                params.append(upper)
        if match_at is not None:
            position, needle = match_at
            if needle:
                # substr() on a BLOB counts bytes, 1-based.
                conditions.append("substr(key, ?, ?) = ?")
                params.extend([position + 1, len(needle), needle])
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return where, params

    async def scan_prefix(
        self,
        partition: Partition,
        prefix: bytes | str,
        *,
        reverse: bool = False,
        offset: int = 0,
        limit: int | None = None,
        match_at: tuple[int, bytes] | None = None,
    ) -> list[tuple[bytes, bytes]]:
        where, params = self._range_clause(as_key(prefix), match_at)
        order = "DESC" if reverse else "ASC"
        sql = (
            f"SELECT key, value FROM {partition.value} {where} "
            f"ORDER BY key {order} LIMIT ? OFFSET ?;"
        )
        params.extend([-1 if limit is None else limit, max(offset, 0)])

        cursor = await self._conn().execute(sql, params)
        rows = await cursor.fetchall()
        await cursor.close()
        return [(bytes(k), bytes(v)) for k, v in rows]

    async def count_prefix(self, partition: Partition, prefix: bytes | str = b"") -> int:
        where, params = self._range_clause(as_key(prefix), None)
        cursor = await self._conn().execute(
            f"SELECT COUNT(*) FROM {partition.value} {where};", params
        )
        row = await cursor.fetchone()
        await cursor.close()
        return int(row[0]) if row else 0
