from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class ImageRecord:
    """In-memory representation of one gallery image and its metadata document.

    Attributes:
        id: Shared base name of the document (`{id}.md`) and its three binaries.
        title: User-editable title.
        original_path: Web path of the unmodified upload.
        modal_path: Web path of the variant bounded for the modal viewer.
        thumbnail_path: Web path of the grid thumbnail.
        upload_date: ISO-8601 UTC timestamp set once at ingestion.
    """

    id: str
    title: str
    original_path: str
    modal_path: str
    thumbnail_path: str
    upload_date: str

    def to_summary(self) -> Dict[str, Any]:
        """Return the shape the gallery client renders."""
        return {
            "id": self.id,
            "title": self.title,
            "path": self.original_path,
            "thumbnailPath": self.thumbnail_path,
            "modalPath": self.modal_path,
            "uploadDate": self.upload_date,
        }
