"""Article domain models - source records, feed pages and read-side views.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models (bottom of the dependency graph - imports only utils).
#
# ``ArticleRecord`` wraps one element of the source API's
# ``content_elements`` array.  The fields the archive actually reads are
# typed and optional; everything else passes through untouched.  The raw
# document is kept alongside so storage writes exactly what the source
# returned, field for field.
#
# ``ArticleSummary`` / ``ArticleDetail`` are the projections served by the
# read API.  They are derived on demand and never stored.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator

from rfa_archive.utils.errors import MalformedResponseError
from rfa_archive.utils.key_codec import filename_from_url, parse_timestamp
from rfa_archive.utils.logging import get_logger

_logger = get_logger(__name__)

# Path under which the read API serves cached image blobs.
IMAGE_ROUTE = "/imgs"


def local_image_url(url: str) -> str | None:
    """Map a source image URL to its cached location, or None if unnamed."""
    name = filename_from_url(url)
    if not name:
        return None
    return f"{IMAGE_ROUTE}/{name}"


def _text(value: Any) -> str:
    """Read a ``{"basic": "..."}`` style field, or a bare string."""
    if isinstance(value, dict):
        value = value.get("basic")
    return value if isinstance(value, str) else ""


# ─── ArticleRecord ───────────────────────────────────────────────────
class ArticleRecord(BaseModel):
    """One article exactly as returned by the source API.

    Only fields needed for keys, image extraction and projections are
    declared; unknown fields are accepted and preserved in the raw
    document.  Use :meth:`from_raw` rather than the constructor so the
    raw document is attached.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    source_id: str | None = Field(default=None, alias="_id", description="Source content id.")
    type: str | None = Field(default=None, description="Content type, usually 'story'.")
    display_date: str | None = Field(default=None, description="ISO-8601 publish time.")
    headlines: dict[str, Any] | None = Field(default=None, description="Headline variants.")
    description: dict[str, Any] | None = Field(default=None, description="Standfirst variants.")
    promo_items: dict[str, Any] | None = Field(default=None, description="Promotional images.")
    credits: dict[str, Any] | None = Field(default=None, description="Bylines.")
    websites: dict[str, Any] = Field(default_factory=dict, description="Per-site URL and section.")
    content_elements: list[Any] = Field(default_factory=list, description="Body blocks.")

    _raw: dict[str, Any] = PrivateAttr(default_factory=dict)

    # Optional fields never reject a record: null or oddly shaped values
    # fall back to their defaults.  Only the URL and date are required,
    # and those are checked where keys are built.

    @field_validator("source_id", "type", "display_date", mode="before")
    @classmethod
    def _optional_str(cls, value: Any) -> str | None:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value if isinstance(value, str) else None

    @field_validator("headlines", "description", mode="before")
    @classmethod
    def _basic_text(cls, value: Any) -> dict[str, Any] | None:
        if isinstance(value, str):
            return {"basic": value}
        return value if isinstance(value, dict) else None

    @field_validator("promo_items", "credits", mode="before")
    @classmethod
    def _optional_dict(cls, value: Any) -> dict[str, Any] | None:
        return value if isinstance(value, dict) else None

    @field_validator("websites", mode="before")
    @classmethod
    def _websites(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @field_validator("content_elements", mode="before")
    @classmethod
    def _blocks(cls, value: Any) -> list[Any]:
        return value if isinstance(value, list) else []

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> ArticleRecord:
        """Validate a raw source document and keep it for verbatim storage.

        Raises
        ------
        MalformedResponseError
            If a typed field has an unexpected shape.
        """
        if not isinstance(raw, dict):
            raise MalformedResponseError(f"Article element is not an object: {str(raw)[:120]}")
        try:
            record = cls.model_validate(raw)
        except ValidationError as exc:
            raise MalformedResponseError(f"Article element failed validation: {exc}") from exc
        record._raw = raw
        return record

    @classmethod
    def from_json(cls, payload: bytes | str) -> ArticleRecord:
        """Rebuild a record from its stored JSON form."""
        try:
            raw = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise MalformedResponseError(f"Stored article is not valid JSON: {exc}") from exc
        return cls.from_raw(raw)

    @property
    def raw(self) -> dict[str, Any]:
        if self._raw:
            return self._raw
        return self.model_dump(by_alias=True, exclude_unset=True)

    def to_json(self) -> str:
        """Serialize the raw document for storage."""
        return json.dumps(self.raw, ensure_ascii=False, separators=(",", ":"))

    # ── Core-required fields ──────────────────────────────────────────

    def canonical_path(self, site: str) -> str:
        """Return ``websites.<site>.website_url`` without surrounding slashes.

        Raises
        ------
        MalformedResponseError
            If the record carries no URL for *site*.
        """
        entry = self.websites.get(site)
        url = entry.get("website_url") if isinstance(entry, dict) else None
        if not isinstance(url, str) or not url.strip("/"):
            raise MalformedResponseError(
                f"Article {self.source_id or '?'} has no website_url for {site}"
            )
        return url.strip("/")

    @property
    def display_timestamp(self) -> str:
        """Return ``display_date``; raises MalformedResponseError if absent."""
        if not self.display_date:
            raise MalformedResponseError(f"Article {self.source_id or '?'} has no display_date")
        return self.display_date

    # ── Optional-field extraction ─────────────────────────────────────

    def embedded_image_urls(self) -> list[str]:
        """Collect image URLs from the promo image and body image blocks.

        Order follows the document.  Missing or oddly shaped fields are
        skipped, never raised.
        """
        urls: list[str] = []

        promo_basic = (self.promo_items or {}).get("basic")
        if isinstance(promo_basic, dict):
            promo_url = promo_basic.get("url")
            if isinstance(promo_url, str) and promo_url:
                urls.append(promo_url)

        for block in self.content_elements:
            if not isinstance(block, dict) or block.get("type") != "image":
                continue
            image_url = block.get("url") or block.get("content")
            if isinstance(image_url, str) and image_url:
                urls.append(image_url)

        return urls

    def first_website(self) -> dict[str, Any]:
        """Return the first per-site entry (records carry exactly one)."""
        for value in self.websites.values():
            if isinstance(value, dict):
                return value
        return {}


# ─── FeedPage ────────────────────────────────────────────────────────
class FeedPage(BaseModel):
    """One page of the paginated story feed."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    count: int = Field(ge=0, description="Total matches for the query.")
    content_elements: list[Any] = Field(default_factory=list, description="Raw article objects.")
    next: Any = Field(default=None, description="Opaque pagination continuation.")

    @classmethod
    def from_payload(cls, payload: Any) -> FeedPage:
        """Validate a decoded response body.

        Raises
        ------
        MalformedResponseError
            If ``count`` is missing or the body has the wrong shape.
        """
        if not isinstance(payload, dict) or "count" not in payload:
            raise MalformedResponseError("Feed response has no 'count' field")
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise MalformedResponseError(f"Feed response failed validation: {exc}") from exc

    def records(self) -> list[ArticleRecord]:
        return [ArticleRecord.from_raw(item) for item in self.content_elements]


# ─── Read-side projections ───────────────────────────────────────────
class ContentKind(str, Enum):
    """Body block kinds rendered by the read API."""

    TEXT = "text"
    HEADER = "header"
    IMAGE = "image"


class ContentBlock(BaseModel):
    """A single body block of an article detail view."""

    model_config = ConfigDict(frozen=True)

    kind: ContentKind
    text: str = ""
    image_url: str | None = None
    caption: str = ""


class ArticleSummary(BaseModel):
    """Listing entry: what a section or site page shows per article."""

    model_config = ConfigDict(frozen=True)

    headline: str = ""
    display_date: str = Field(default="", description="Publish date, UTC, YYYY-MM-DD.")
    description: str = ""
    promo_image: str | None = Field(default=None, description="Cached promo image path.")
    caption: str | None = None
    website_url: str = ""
    section_id: str = ""
    section_name: str = ""

    @classmethod
    def from_record(cls, record: ArticleRecord) -> ArticleSummary:
        display_date = ""
        if record.display_date:
            try:
                seconds = parse_timestamp(record.display_date)
                display_date = datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%Y-%m-%d")
            except ValueError:
                _logger.warning("article_bad_display_date", display_date=record.display_date)

        promo_image: str | None = None
        caption: str | None = None
        promo_basic = (record.promo_items or {}).get("basic")
        if isinstance(promo_basic, dict):
            if isinstance(promo_basic.get("url"), str):
                promo_image = local_image_url(promo_basic["url"])
            if isinstance(promo_basic.get("caption"), str):
                caption = promo_basic["caption"]

        website = record.first_website()
        section = website.get("website_section") or {}
        section_id = section.get("_id") if isinstance(section, dict) else None
        section_name = section.get("name") if isinstance(section, dict) else None

        return cls(
            headline=_text(record.headlines),
            display_date=display_date,
            description=_text(record.description),
            promo_image=promo_image,
            caption=caption,
            website_url=website.get("website_url") or "",
            section_id=(section_id or "").replace("world/asia/", ""),
            section_name=section_name or "",
        )


class ArticleDetail(BaseModel):
    """Full article view: summary plus author and body blocks."""

    model_config = ConfigDict(frozen=True)

    site: str = ""
    summary: ArticleSummary
    author: str | None = None
    blocks: list[ContentBlock] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: ArticleRecord) -> ArticleDetail:
        summary = ArticleSummary.from_record(record)
        site = summary.website_url.strip("/").split("/", 1)[0]

        author: str | None = None
        bylines = (record.credits or {}).get("by")
        if isinstance(bylines, list) and bylines and isinstance(bylines[0], dict):
            name = bylines[0].get("name")
            author = name if isinstance(name, str) else None

        blocks: list[ContentBlock] = []
        for block in record.content_elements:
            if not isinstance(block, dict):
                continue
            kind = block.get("type")
            if kind in (ContentKind.TEXT.value, ContentKind.HEADER.value):
                content = block.get("content")
                if isinstance(content, str) and content:
                    blocks.append(ContentBlock(kind=ContentKind(kind), text=content))
            elif kind == ContentKind.IMAGE.value:
                source_url = block.get("url") or block.get("content")
                image_url = local_image_url(source_url) if isinstance(source_url, str) else None
                blocks.append(
                    ContentBlock(kind=ContentKind.IMAGE, image_url=image_url, caption=_text(block.get("caption")))
                )
            else:
                _logger.warning("article_unknown_block", website_url=summary.website_url, block_type=kind)

        return cls(site=site, summary=summary, author=author, blocks=blocks)
