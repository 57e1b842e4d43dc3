"""Unit tests for SQLiteArchiveStore.

Runs against a temporary database file so the real data directory is
never touched.
"""

from __future__ import annotations

import asyncio

import pytest

from rfa_archive.interfaces.archive_store import Partition, WriteBatch
from rfa_archive.providers.store.sqlite_archive_store import (
    SQLiteArchiveStore,
    prefix_upper_bound,
)
from rfa_archive.utils.errors import ConfigurationError, StorageCommitError


# ─── Initialization ───────────────────────────────────────────────

@pytest.mark.asyncio
async def test_initialize_creates_file(store, data_dir):
    assert (data_dir / "rfa.db").exists()
    assert store.get_provider_name() == "sqlite_archive"


@pytest.mark.asyncio
async def test_double_initialize_is_idempotent(store):
    await store.initialize()


@pytest.mark.asyncio
async def test_read_only_requires_existing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        await SQLiteArchiveStore(tmp_path / "missing.db", read_only=True).initialize()


@pytest.mark.asyncio
async def test_read_only_rejects_writes(store):
    await store.put(Partition.DONE, "rfa-lao-2001-1")
    async with SQLiteArchiveStore(store.db_path, read_only=True) as ro:
        assert await ro.contains(Partition.DONE, "rfa-lao-2001-1")
        with pytest.raises(StorageCommitError):
            await ro.put(Partition.DONE, "rfa-lao-2001-2")


# ─── Point operations ─────────────────────────────────────────────

@pytest.mark.asyncio
async def test_put_get_and_overwrite(store):
    assert await store.get(Partition.ARTICLES, "english/a") is None
    await store.put(Partition.ARTICLES, "english/a", '{"v":1}')
    await store.put(Partition.ARTICLES, "english/a", '{"v":2}')
    assert await store.get(Partition.ARTICLES, "english/a") == b'{"v":2}'
    assert await store.count_prefix(Partition.ARTICLES) == 1


@pytest.mark.asyncio
async def test_partitions_are_separate(store):
    await store.put(Partition.DONE, "same-key")
    assert await store.contains(Partition.DONE, "same-key")
    assert not await store.contains(Partition.ARTICLES, "same-key")
    assert await store.get(Partition.DONE, "same-key") == b""


# ─── Batches ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_batch_commits_everything(store):
    batch = WriteBatch()
    batch.put(Partition.ARTICLES, "lao/x", "{}")
    batch.put(Partition.INDEX, b"\x05\x00\x00\x00\x00\x00\x00\x00\x01x")
    batch.put(Partition.DONE, "rfa-lao-2000-1")
    assert len(batch) == 3
    await store.write_batch(batch)

    assert await store.contains(Partition.ARTICLES, "lao/x")
    assert await store.count_prefix(Partition.INDEX, b"\x05") == 1
    assert await store.contains(Partition.DONE, "rfa-lao-2000-1")


@pytest.mark.asyncio
async def test_failed_batch_leaves_nothing(store):
    batch = WriteBatch()
    batch.put(Partition.ARTICLES, "lao/x", "{}")
    batch.put(Partition.DONE, "rfa-lao-2000-1")
    # NOT NULL constraint on value rejects the last put.
    batch.puts.append((Partition.ARTICLES, b"lao/y", None))

    with pytest.raises(StorageCommitError):
        await store.write_batch(batch)

    assert not await store.contains(Partition.ARTICLES, "lao/x")
    assert not await store.contains(Partition.DONE, "rfa-lao-2000-1")

    # The connection is usable afterwards.
    await store.put(Partition.DONE, "rfa-lao-2000-2")
    assert await store.contains(Partition.DONE, "rfa-lao-2000-2")


@pytest.mark.asyncio
async def test_concurrent_batches_stay_atomic(store):
    def _batch(segment: str, n: int, broken: bool = False) -> WriteBatch:
        batch = WriteBatch()
        for i in range(n):
            batch.put(Partition.ARTICLES, f"{segment}/s-{i}", "{}")
        batch.put(Partition.DONE, f"rfa-{segment}-2000-1")
        if broken:
            batch.puts.append((Partition.ARTICLES, f"{segment}/bad".encode(), None))
        return batch

    results = await asyncio.gather(
        store.write_batch(_batch("lao", 200)),
        store.write_batch(_batch("khmer", 200, broken=True)),
        store.write_batch(_batch("korean", 200)),
        return_exceptions=True,
    )

    assert results[0] is None
    assert isinstance(results[1], StorageCommitError)
    assert results[2] is None
    assert await store.count_prefix(Partition.ARTICLES, "lao/") == 200
    assert await store.count_prefix(Partition.ARTICLES, "korean/") == 200
    assert await store.count_prefix(Partition.ARTICLES, "khmer/") == 0
    assert not await store.contains(Partition.DONE, "rfa-khmer-2000-1")


@pytest.mark.asyncio
async def test_empty_batch_is_a_no_op(store):
    await store.write_batch(WriteBatch())
    assert await store.count_prefix(Partition.ARTICLES) == 0


# ─── Ordered scans ────────────────────────────────────────────────

@pytest.fixture
async def populated(store):
    batch = WriteBatch()
    for key in (b"\x01a", b"\x01b", b"\x01c", b"\x01\xffz", b"\x02a", b"\x00z"):
        batch.put(Partition.INDEX, key)
    await store.write_batch(batch)
    return store


@pytest.mark.asyncio
async def test_scan_prefix_ascending(populated):
    rows = await populated.scan_prefix(Partition.INDEX, b"\x01")
    assert [k for k, _ in rows] == [b"\x01a", b"\x01b", b"\x01c", b"\x01\xffz"]


@pytest.mark.asyncio
async def test_scan_prefix_reverse_window(populated):
    rows = await populated.scan_prefix(Partition.INDEX, b"\x01", reverse=True, offset=1, limit=2)
    assert [k for k, _ in rows] == [b"\x01c", b"\x01b"]


@pytest.mark.asyncio
async def test_scan_past_end_is_empty(populated):
    assert await populated.scan_prefix(Partition.INDEX, b"\x01", offset=10, limit=5) == []


@pytest.mark.asyncio
async def test_scan_match_at(populated):
    rows = await populated.scan_prefix(Partition.INDEX, b"\x01", match_at=(1, b"b"))
    assert [k for k, _ in rows] == [b"\x01b"]


@pytest.mark.asyncio
async def test_scan_string_prefix(store):
    for key in ("mandarin/news/a", "mandarin/news/b", "mandarin/newsletter/c", "mandarin/video/d"):
        await store.put(Partition.ARTICLES, key, "{}")
    rows = await store.scan_prefix(Partition.ARTICLES, "mandarin/news/", reverse=True)
    assert [k for k, _ in rows] == [b"mandarin/news/b", b"mandarin/news/a"]


@pytest.mark.asyncio
async def test_count_prefix(populated):
    assert await populated.count_prefix(Partition.INDEX, b"\x01") == 4
    assert await populated.count_prefix(Partition.INDEX) == 6


def test_prefix_upper_bound():
    assert prefix_upper_bound(b"\x01") == b"\x02"
    assert prefix_upper_bound(b"ab") == b"ac"
    assert prefix_upper_bound(b"a\xff") == b"b"
    assert prefix_upper_bound(b"\xff\xff") is None
    assert prefix_upper_bound(b"") is None
