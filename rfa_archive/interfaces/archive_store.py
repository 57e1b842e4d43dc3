"""Abstract base class for the ordered key-value archive store.

# ─── ADAPTER PATTERN ─────────────────────────────────────────────────
#
# IArchiveStore is the only surface the crawler and reader see of the
# storage engine: point get/put, atomic batches, and ordered prefix
# scans.  The concrete implementation is SQLiteArchiveStore
# (rfa_archive/providers/store/sqlite_archive_store.py).
#
# Keys are raw bytes compared lexicographically, exactly like an LSM or
# B-tree KV engine.  Three partitions live side by side:
#
#   ARTICLES  canonical path (utf-8)           -> article JSON
#   INDEX     site-code + ts(8, BE) + rest     -> b""
#   DONE      "{site}-{year}-{month}" (utf-8)  -> b""
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


class Partition(str, Enum):
    """Named key spaces inside the archive store."""

    ARTICLES = "articles"
    INDEX = "article_index"
    DONE = "crawl_done"


def as_key(key: bytes | str) -> bytes:
    """Encode string keys as utf-8; pass bytes through."""
    return key.encode("utf-8") if isinstance(key, str) else key


@dataclass
class WriteBatch:
    """Puts collected in memory and committed all-or-nothing."""

    puts: list[tuple[Partition, bytes, bytes]] = field(default_factory=list)

    def put(self, partition: Partition, key: bytes | str, value: bytes | str = b"") -> None:
        self.puts.append((partition, as_key(key), as_key(value)))

    def __len__(self) -> int:
        return len(self.puts)


class IArchiveStore(ABC):
    """Contract for the ordered key-value engine behind the archive.

    All operations are async so a network-backed engine could replace
    the embedded one without touching the crawler or reader.
    """

    # ── Lifecycle ──────────────────────────────────────────────────────

    @abstractmethod
    async def initialize(self) -> None:
        """Create partitions if they don't exist.  Called at startup."""

    @abstractmethod
    async def close(self) -> None:
        """Release engine resources."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""

    # ── Point operations ───────────────────────────────────────────────

    @abstractmethod
    async def get(self, partition: Partition, key: bytes | str) -> bytes | None:
        """Return the value stored under *key*, or None."""

    @abstractmethod
    async def contains(self, partition: Partition, key: bytes | str) -> bool:
        """Return True when *key* exists in *partition*."""

    @abstractmethod
    async def put(self, partition: Partition, key: bytes | str, value: bytes | str = b"") -> None:
        """Insert or overwrite a single key (last write wins)."""

    # ── Batches ────────────────────────────────────────────────────────

    @abstractmethod
    async def write_batch(self, batch: WriteBatch) -> None:
        """Commit every put in *batch* atomically.

        Raises
        ------
        StorageCommitError
            If the engine rejects the batch; nothing from it is visible.
        """

    # ── Ordered scans ──────────────────────────────────────────────────

    @abstractmethod
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
        """Return ``(key, value)`` pairs whose key starts with *prefix*.

        Parameters
        ----------
        prefix:
            Key prefix; ``b""`` scans the whole partition.
        reverse:
            Descending key order when True.
        offset:
            Matches to skip before collecting.
        limit:
            Maximum pairs returned; None means no limit.
        match_at:
            Optional ``(position, needle)``: keep only keys whose bytes at
            *position* start with *needle*.  Applied before windowing.
        """

    @abstractmethod
    async def count_prefix(self, partition: Partition, prefix: bytes | str = b"") -> int:
        """Return how many keys in *partition* start with *prefix*."""
