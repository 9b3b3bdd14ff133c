"""Error types raised by the gallery store and ingestion pipeline.

Each error carries the HTTP status the controllers translate it to, so the
routing layer never has to inspect messages.
"""

from __future__ import annotations


class GalleryError(Exception):
    """Base class for gallery failures."""

    status_code = 500


class InvalidInput(GalleryError):
    """Missing or empty title, non-image MIME type, or inert editor mutation."""

    status_code = 400


class PayloadTooLarge(GalleryError):
    """Upload exceeds the configured size ceiling."""

    status_code = 413

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Upload of {size} bytes exceeds the {limit} byte limit")


class UnsupportedFormat(GalleryError):
    """Bytes could not be decoded as an image."""

    status_code = 415


class NotFound(GalleryError):
    """Referenced record id has no metadata document."""

    status_code = 404

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Image {record_id} not found")


class MalformedDocument(GalleryError):
    """A metadata document could not be parsed."""


class IOFailure(GalleryError):
    """Generic read, write, or delete failure on the backing directory."""
