"""Upload ingestion: validate, resize, and persist a new gallery record.

The pipeline validates the upload, derives a collision-resistant base name,
renders the modal and thumbnail sizes with `services.variant_generator`, and
hands the record to a `RecordStorage`, which writes the binaries before the
metadata document. Nothing is retried; any failure ends the request.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from datetime import datetime, timezone
from typing import Optional

from dal.record_store import RecordStorage
from models.image_record import ImageRecord
from services.variant_generator import VariantGenerator
from utils.media_validation import (
    FORMAT_EXTENSIONS,
    extension_for,
    format_for_extension,
    validate_image_upload,
    validate_title,
)
from utils.settings import DEFAULT_MAX_UPLOAD_BYTES

LOGGER = logging.getLogger(__name__)


def new_record_id(now: Optional[datetime] = None) -> str:
    """Return `{epoch-millis}-{8 random hex}`.

    The millisecond prefix keeps ids roughly time-ordered; the random suffix
    keeps two ingestions in the same millisecond from colliding.
    """
    now = now or datetime.now(timezone.utc)
    return f"{int(now.timestamp() * 1000)}-{secrets.token_hex(4)}"


def format_upload_date(now: datetime) -> str:
    """Render `now` as ISO-8601 UTC with milliseconds, e.g. `2024-01-02T03:04:05.678Z`."""
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class UploadIngestionPipeline:
    """Turn an uploaded file into a stored gallery record.

    Args:
        store: Storage receiving the record.
        generator: Resizer producing the modal and thumbnail variants.
        max_upload_bytes: Size ceiling checked before any decoding.
    """

    def __init__(
        self,
        store: RecordStorage,
        generator: Optional[VariantGenerator] = None,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ) -> None:
        self.store = store
        self.generator = generator or VariantGenerator()
        self.max_upload_bytes = max_upload_bytes

    async def ingest(
        self,
        data: bytes,
        mime_type: Optional[str],
        title: Optional[str],
        filename: Optional[str] = None,
    ) -> ImageRecord:
        """Validate, resize and persist one upload.

        Args:
            data: Raw bytes of the uploaded file.
            mime_type: Declared MIME type; must start with `image/`.
            title: Record title; must be non-empty.
            filename: Original filename, used for the binaries' extension.

        Returns:
            The stored record, with web paths for all three binaries.

        Raises:
            InvalidInput: Empty title, empty payload or non-image MIME type.
            PayloadTooLarge: Payload exceeds the ceiling.
            UnsupportedFormat: Bytes are not a decodable image.
            IOFailure: A file could not be written.
        """
        cleaned_title = validate_title(title)
        mime = validate_image_upload(data, mime_type, self.max_upload_bytes)

        now = datetime.now(timezone.utc)
        record_id = new_record_id(now)

        # Derived sizes are encoded in the format their filenames name.
        ext = extension_for(filename, mime)
        target_format = format_for_extension(ext)

        # resizing is blocking -> run in thread
        variants = await asyncio.to_thread(self.generator.generate, data, target_format)

        if target_format is None:
            ext = FORMAT_EXTENSIONS[variants.image_format]
        store = self.store
        record = ImageRecord(
            id=record_id,
            title=cleaned_title,
            original_path=store.web_path(store.variant_filename(record_id, "original", ext)),
            modal_path=store.web_path(store.variant_filename(record_id, "modal", ext)),
            thumbnail_path=store.web_path(store.variant_filename(record_id, "thumbnail", ext)),
            upload_date=format_upload_date(now),
        )

        await store.create_record(record, variants)
        LOGGER.info("Ingested %s as image %s (%d bytes)", filename or "upload", record_id, len(data))
        return record
