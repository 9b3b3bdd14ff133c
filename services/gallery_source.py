"""Gallery data source with a design-time editor mode.

In `GalleryMode.EDITOR` the page builder renders the gallery without a
backend: the source answers with fixed placeholder records, never touches
the store, and every mutation is inert.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import List, Optional

from dal.record_store import RecordStorage
from models.errors import InvalidInput
from models.image_record import ImageRecord
from services.image_store import format_upload_date


class GalleryMode(str, enum.Enum):
    LIVE = "live"
    EDITOR = "editor"


def placeholder_records(now: Optional[datetime] = None) -> List[ImageRecord]:
    """Return the sample records shown while designing the page."""
    stamp = format_upload_date(now or datetime.now(timezone.utc))
    return [
        ImageRecord(
            id=f"sample{n}",
            title=f"Sample Image {n}",
            original_path=f"/images/sample{n}.jpg",
            modal_path=f"/images/sample{n}_modal.jpg",
            thumbnail_path=f"/images/sample{n}_thumb.jpg",
            upload_date=stamp,
        )
        for n in (1, 2)
    ]


class GalleryDataSource:
    """Entry point the presentation layer reads gallery data through.

    Args:
        store: Backing storage; unused in editor mode.
        mode: Explicit rendering mode for this request.
    """

    def __init__(self, store: Optional[RecordStorage], mode: GalleryMode = GalleryMode.LIVE) -> None:
        self.store = store
        self.mode = mode

    @property
    def mutations_enabled(self) -> bool:
        """False in editor mode, where upload, edit and delete are inert."""
        return self.mode is GalleryMode.LIVE

    def require_mutations(self) -> RecordStorage:
        """Return the store for a mutation, or raise in editor mode."""
        if not self.mutations_enabled or self.store is None:
            raise InvalidInput("Gallery changes are disabled in editor mode")
        return self.store

    async def list_images(self) -> List[ImageRecord]:
        """Return records newest first, or placeholders in editor mode."""
        if self.mode is GalleryMode.EDITOR:
            return placeholder_records()
        if self.store is None:
            raise RuntimeError("Record store is not configured.")
        return await self.store.list_records()
