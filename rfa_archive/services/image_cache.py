"""Content-addressed-by-name cache of article images on local disk.

Images are stored flat under ``<data_dir>/imgs/`` using the last path
segment of their source URL as the filename.  A file that already exists
is never fetched again, which makes re-running a crawl unit cheap.
"""

from __future__ import annotations

import os
from pathlib import Path

import structlog

from rfa_archive.interfaces.source_provider import ISourceProvider
from rfa_archive.utils.errors import ImageFetchError, RFAArchiveError
from rfa_archive.utils.key_codec import filename_from_url

logger = structlog.get_logger(logger_name=__name__)


class ImageCache:
    """Download-once image store.

    Parameters
    ----------
    source:
        Provider used to fetch blobs (relative URLs are resolved there).
    image_dir:
        Target directory; created on first write.
    """

    def __init__(self, source: ISourceProvider, image_dir: str | Path) -> None:
        self._source = source
        self._image_dir = Path(image_dir)

    @property
    def image_dir(self) -> Path:
        return self._image_dir

    def path_for(self, url: str) -> Path | None:
        """Local path an image would be cached at, or None if the URL has no filename."""
        name = filename_from_url(url)
        if not name:
            return None
        return self._image_dir / name

    async def ensure(self, url: str) -> bool:
        """Make sure the image behind *url* is on disk.

        Returns
        -------
        bool
            True when the image was downloaded now, False when it was
            already cached.

        Raises
        ------
        ImageFetchError
            If the URL has no filename, the download fails, or the file
            cannot be written.
        """
        target = self.path_for(url)
        if target is None:
            raise ImageFetchError(f"Image URL has no filename: {url!r}", provider_name="image_cache")
        if target.exists():
            return False

        try:
            data = await self._source.fetch_bytes(url)
        except RFAArchiveError as exc:
            raise ImageFetchError(f"Download of {url} failed: {exc}", provider_name="image_cache") from exc

        try:
            self._image_dir.mkdir(parents=True, exist_ok=True)
            partial = target.with_name(target.name + ".part")
            partial.write_bytes(data)
            os.replace(partial, target)
        except OSError as exc:
            raise ImageFetchError(f"Writing {target} failed: {exc}", provider_name="image_cache") from exc

        logger.debug("image_cached", url=url, path=str(target), size=len(data))
        return True
