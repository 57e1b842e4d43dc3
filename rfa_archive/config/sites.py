"""Static site table for the Radio Free Asia language services.

The source API addresses each language service by a *website id*
(``rfa-mandarin``), while canonical article paths start with a *URL
segment* (``mandarin/...``).  The segment is what the key codec maps to a
one-byte site code; the website id is what the crawler sends as
``_website`` and uses to find ``websites.<id>.website_url`` in a record.
"""

from __future__ import annotations

from rfa_archive.utils.errors import ConfigurationError

# Website ids in crawl order.  English runs under the parent brand id.
SITE_LIST: tuple[str, ...] = (
    "radio-free-asia",
    "rfa-mandarin",
    "rfa-cantonese",
    "rfa-burmese",
    "rfa-korean",
    "rfa-lao",
    "rfa-khmer",
    "rfa-tibetan",
    "rfa-uyghur",
    "rfa-vietnamese",
)

SITE_SEGMENTS: dict[str, str] = {
    "radio-free-asia": "english",
    "rfa-mandarin": "mandarin",
    "rfa-cantonese": "cantonese",
    "rfa-burmese": "burmese",
    "rfa-korean": "korean",
    "rfa-lao": "lao",
    "rfa-khmer": "khmer",
    "rfa-tibetan": "tibetan",
    "rfa-uyghur": "uyghur",
    "rfa-vietnamese": "vietnamese",
}


def resolve_sites(requested: list[str] | None) -> list[str]:
    """Normalize a user-supplied site selection.

    An empty or missing selection means every site.  Unknown ids raise
    :class:`ConfigurationError` listing the valid options.
    """
    if not requested:
        return list(SITE_LIST)

    sites: list[str] = []
    for raw in requested:
        site = raw.strip().lower()
        if not site:
            continue
        if site not in SITE_SEGMENTS:
            raise ConfigurationError(
                f"Unknown website: {site}, available options are: {', '.join(SITE_LIST)}"
            )
        if site not in sites:
            sites.append(site)
    return sites or list(SITE_LIST)
