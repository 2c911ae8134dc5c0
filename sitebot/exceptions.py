"""Error types raised inside the monitor. Per-source boundaries convert them to outcomes."""

from typing import Optional


class SitebotError(Exception):
    """Base class for all sitebot errors."""


class FetchError(SitebotError):
    """Non-2xx response or transport failure while fetching a sitemap."""

    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = ""):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        if status_code is not None:
            message = f"HTTP {status_code}: {reason}".rstrip(": ")
        else:
            message = reason or "request failed"
        super().__init__(message)


class DecompressionError(SitebotError):
    """Gzip body stream missing or not valid gzip data."""


class StorageError(SitebotError):
    """Key-value read or write failure."""


class NotFoundError(SitebotError):
    """Requested source is not in the registry."""
