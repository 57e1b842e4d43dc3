"""Custom exception hierarchy for the RFA archive.

All application exceptions inherit from :class:`RFAArchiveError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "rfa_feed", "sqlite_archive", "image_cache") caused the
failure.

The hierarchy is organized by crawl stage:

    RFAArchiveError  (base -- catch-all for any archive error)
    +-- TransientFetchError        (network / timeout / non-2xx after retries)
    +-- MalformedResponseError     (unparseable JSON, missing required field)
    |   +-- IncompletePaginationError  (reported count never reached)
    +-- ImageFetchError            (single image download failed)
    +-- StorageCommitError         (atomic batch write failed)
    +-- ConfigurationError         (startup / invalid sites or months)

A crawl unit is aborted by every error except :class:`ImageFetchError`,
which the crawler logs and skips.  The scheduler catches the base class so
one failing month never halts the whole run.
"""


class RFAArchiveError(Exception):
    """Base exception for all archive errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which collaborator triggered the error.
    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[rfa_feed] HTTP 503``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Source API errors
# ---------------------------------------------------------------------------

class TransientFetchError(RFAArchiveError):
    """Raised when the source API stays unreachable after bounded retries.

    Aborts the current crawl unit without partial writes; the next scheduler
    pass retries the unit from scratch.
    """

    def __init__(
        self,
        message: str = "Source API request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class MalformedResponseError(RFAArchiveError):
    """Raised when a response cannot be parsed or lacks a required field.

    Not retried automatically -- usually means the API contract changed.
    """

    def __init__(
        self,
        message: str = "Malformed source API response",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IncompletePaginationError(MalformedResponseError):
    """Raised when paging stops short of the reported total ``count``."""

    def __init__(
        self,
        message: str = "Pagination ended before the reported count was reached",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ImageFetchError(RFAArchiveError):
    """Raised when a single image blob cannot be downloaded or written."""

    def __init__(
        self,
        message: str = "Image download failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Storage / configuration errors
# ---------------------------------------------------------------------------

class StorageCommitError(RFAArchiveError):
    """Raised when an atomic batch write is rejected by the storage engine.

    The completion marker travels in the same batch, so a failed commit
    never leaves a marker behind.
    """

    def __init__(
        self,
        message: str = "Archive batch commit failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(RFAArchiveError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
