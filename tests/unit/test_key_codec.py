"""Unit tests for rfa_archive.utils.key_codec."""

from __future__ import annotations

import struct

import pytest

from rfa_archive.utils.key_codec import (
    INDEX_HEADER_LEN,
    UNKNOWN_SITE_CODE,
    done_key,
    filename_from_url,
    index_key,
    index_prefix,
    parse_timestamp,
    path_from_index_key,
    site_code,
    split_canonical_url,
    timestamp_from_index_key,
)


# ─── Site codes ────────────────────────────────────────────────────

class TestSiteCode:
    def test_known_segments(self):
        assert site_code("english") == 0
        assert site_code("mandarin") == 1
        assert site_code("vietnamese") == 9

    def test_lookup_is_case_insensitive(self):
        assert site_code("Korean") == 4

    def test_unknown_segment_maps_to_99(self):
        assert site_code("klingon") == UNKNOWN_SITE_CODE == 99

    def test_index_prefix_is_one_byte(self):
        assert index_prefix("tibetan") == b"\x07"


# ─── Timestamps ────────────────────────────────────────────────────

class TestParseTimestamp:
    def test_zulu_suffix(self):
        assert parse_timestamp("1970-01-01T00:01:00Z") == 60

    def test_offset_is_honoured(self):
        assert parse_timestamp("1970-01-01T08:00:00+08:00") == 0

    def test_fractional_seconds_are_floored(self):
        assert parse_timestamp("1970-01-01T00:00:10.900Z") == 10

    def test_naive_is_utc(self):
        assert parse_timestamp("1970-01-02T00:00:00") == 86400

    @pytest.mark.parametrize("bad", ["", "yesterday", "2020-13-01T00:00:00Z"])
    def test_invalid_raises(self, bad):
        with pytest.raises(ValueError):
            parse_timestamp(bad)


# ─── Index keys ────────────────────────────────────────────────────

class TestIndexKey:
    def test_layout(self):
        key = index_key("/mandarin/news/story-1/", "2020-03-05T10:00:00Z")
        assert key[0] == 1
        assert struct.unpack(">q", key[1:9])[0] == parse_timestamp("2020-03-05T10:00:00Z")
        assert key[INDEX_HEADER_LEN:] == b"news/story-1"

    def test_byte_order_matches_time_order(self):
        earlier = index_key("korean/a", "2001-01-01T00:00:00Z")
        later = index_key("korean/a", "2001-01-01T00:00:01Z")
        much_later = index_key("korean/a", "2024-06-30T23:59:59Z")
        assert earlier < later < much_later

    def test_time_dominates_path(self):
        # Lexicographically larger path, but earlier timestamp.
        old = index_key("lao/zzz", "2010-01-01T00:00:00Z")
        new = index_key("lao/aaa", "2011-01-01T00:00:00Z")
        assert old < new

    def test_sites_do_not_interleave(self):
        newest_english = index_key("english/x", "2025-01-01T00:00:00Z")
        oldest_mandarin = index_key("mandarin/x", "1998-01-01T00:00:00Z")
        assert newest_english < oldest_mandarin

    def test_unknown_site_still_encodes(self):
        assert index_key("podcasts/ep-1", "2020-01-01T00:00:00Z")[0] == 99

    def test_url_without_separator_raises(self):
        with pytest.raises(ValueError):
            index_key("mandarin", "2020-01-01T00:00:00Z")

    def test_roundtrip_helpers(self):
        key = index_key("uyghur/news/item", "2019-05-01T12:00:00Z")
        assert path_from_index_key("uyghur", key) == "uyghur/news/item"
        assert timestamp_from_index_key(key) == parse_timestamp("2019-05-01T12:00:00Z")


def test_split_canonical_url_trims_slashes():
    assert split_canonical_url("/khmer/news/a/b/") == ("khmer", "news/a/b")


def test_done_key_month_not_padded():
    assert done_key("rfa-lao", 2003, 4) == "rfa-lao-2003-4"
    assert done_key("rfa-lao", 2003, 11) == "rfa-lao-2003-11"


# ─── Filenames ─────────────────────────────────────────────────────

class TestFilenameFromUrl:
    def test_strips_query(self):
        assert filename_from_url("https://x.org/a/b/c.jpg?w=10") == "c.jpg"

    def test_relative_path(self):
        assert filename_from_url("resizer/v2/ABC.png?auth=1") == "ABC.png"

    def test_strips_fragment(self):
        assert filename_from_url("https://x.org/pic.gif#frag") == "pic.gif"

    def test_no_segment_is_empty(self):
        assert filename_from_url("https://x.org/") == ""
        assert filename_from_url("") == ""
