"""Storage key codec for the article archive.

Pure functions mapping (site, canonical URL, publish timestamp) to the keys
used by the three archive partitions.  No state, no I/O.

# ─── INDEX KEY LAYOUT ────────────────────────────────────────────────
#
#   [site-code: 1 byte][epoch seconds: 8 bytes big-endian][path rest]
#
#   canonical URL  "mandarin/news/story-123"
#                   ^^^^^^^^ ^^^^^^^^^^^^^^^
#                   segment  rest
#
# Big-endian makes byte order equal numeric order, so within one site
# code the index partition is already sorted by publish time.  A reverse
# prefix scan over ``[site-code]`` therefore yields newest-first listings
# without a sort step at read time.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import math
import struct
from datetime import datetime, timezone
from urllib.parse import urlsplit

# Closed table: adding a site means extending it here.
SITE_CODES: dict[str, int] = {
    "english": 0,
    "mandarin": 1,
    "cantonese": 2,
    "burmese": 3,
    "korean": 4,
    "lao": 5,
    "khmer": 6,
    "tibetan": 7,
    "uyghur": 8,
    "vietnamese": 9,
}

UNKNOWN_SITE_CODE = 99

_TIMESTAMP_LEN = 8
INDEX_HEADER_LEN = 1 + _TIMESTAMP_LEN


def site_code(segment: str) -> int:
    """Return the one-byte code for a site URL segment (99 when unknown)."""
    return SITE_CODES.get(segment.lower(), UNKNOWN_SITE_CODE)


def split_canonical_url(canonical_url: str) -> tuple[str, str]:
    """Split ``site/rest`` after trimming surrounding slashes.

    Raises
    ------
    ValueError
        If the URL has no ``/`` separating the site segment from the rest.
    """
    trimmed = canonical_url.strip("/")
    segment, sep, rest = trimmed.partition("/")
    if not sep or not segment:
        raise ValueError(f"Canonical URL has no site segment: {canonical_url!r}")
    return segment, rest


def parse_timestamp(display_timestamp: str) -> int:
    """Parse an ISO-8601 timestamp into whole epoch seconds.

    A trailing ``Z`` is accepted; naive timestamps are read as UTC.
    Raises ``ValueError`` on anything unparseable.
    """
    if not display_timestamp:
        raise ValueError("Empty display timestamp")
    parsed = datetime.fromisoformat(display_timestamp.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return math.floor(parsed.timestamp())


def index_prefix(segment: str) -> bytes:
    """Return the one-byte scan prefix covering every index entry of a site."""
    return bytes([site_code(segment)])


def index_key(canonical_url: str, display_timestamp: str) -> bytes:
    """Build the secondary-index key for an article.

    Parameters
    ----------
    canonical_url:
        Canonical article path, e.g. ``"mandarin/news/story-123"``.
    display_timestamp:
        ISO-8601 publish time with timezone.

    Returns
    -------
    bytes
        ``[site-code][epoch seconds, 8 bytes big-endian][rest]``.
    """
    segment, rest = split_canonical_url(canonical_url)
    seconds = parse_timestamp(display_timestamp)
    return index_prefix(segment) + struct.pack(">q", seconds) + rest.encode("utf-8")


def timestamp_from_index_key(key: bytes) -> int:
    """Recover the epoch seconds embedded in an index key."""
    return struct.unpack(">q", key[1:INDEX_HEADER_LEN])[0]


def path_from_index_key(segment: str, key: bytes) -> str:
    """Rebuild the canonical path (primary key) from an index key."""
    rest = key[INDEX_HEADER_LEN:].decode("utf-8", errors="replace")
    return f"{segment}/{rest}"


def done_key(site: str, year: int, month: int) -> str:
    """Completion-marker key for a crawl unit (month is not zero padded)."""
    return f"{site}-{year}-{month}"


def filename_from_url(url: str) -> str:
    """Return the final path segment of *url* without its query string.

    Used to name cached image blobs.  Returns ``""`` when the URL has no
    path segment at all; callers must check for that.
    """
    path = urlsplit(url).path if "://" in url else url.split("?", 1)[0]
    path = path.split("#", 1)[0]
    return path.rsplit("/", 1)[-1]
