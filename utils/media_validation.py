"""Validation helpers for uploaded images."""

from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from models.errors import InvalidInput, PayloadTooLarge

IMAGE_MIME_PREFIX = "image/"

# Extensions for MIME types whose subtype is not already a usable suffix.
MIME_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/pjpeg": ".jpg",
    "image/svg+xml": ".svg",
    "image/x-icon": ".ico",
    "image/vnd.microsoft.icon": ".ico",
}

FORMAT_EXTENSIONS = {"JPEG": ".jpg", "PNG": ".png", "WEBP": ".webp", "GIF": ".gif", "BMP": ".bmp", "TIFF": ".tif"}
# Suffixes that name a format Pillow can write; the rest get their names from the decoded image.
EXTENSION_FORMATS = {ext: fmt for fmt, ext in FORMAT_EXTENSIONS.items()}
EXTENSION_FORMATS.update({".jpeg": "JPEG", ".jpe": "JPEG", ".tiff": "TIFF"})


def normalize_mime(content_type: Optional[str]) -> str:
    """Lower-case a Content-Type and drop parameters such as `; charset=`."""
    return (content_type or "").lower().split(";", 1)[0].strip()


def validate_title(title: Optional[str]) -> str:
    """Return the stripped title, raising InvalidInput when it is empty."""
    cleaned = (title or "").strip()
    if not cleaned:
        raise InvalidInput("Title is required")
    return cleaned


def validate_image_upload(data: bytes, mime_type: Optional[str], max_bytes: int) -> str:
    """Check the declared MIME type and size of an upload.

    Returns:
        The normalised MIME type.

    Raises:
        InvalidInput: If the payload is empty or the MIME type is not an image.
        PayloadTooLarge: If the payload exceeds `max_bytes`.
    """
    mime = normalize_mime(mime_type)
    if not mime.startswith(IMAGE_MIME_PREFIX):
        raise InvalidInput(f"Unsupported content type: {mime_type or 'missing'}")
    if not data:
        raise InvalidInput("Uploaded image is empty.")
    if len(data) > max_bytes:
        raise PayloadTooLarge(len(data), max_bytes)
    return mime


def extension_for(filename: Optional[str], mime_type: str, image_format: Optional[str] = None) -> str:
    """Pick the file extension shared by a record's binaries.

    The upload's own extension wins, then the MIME type, then the decoded
    image format. `.jpeg` is normalised to `.jpg`.
    """
    suffix = Path(filename or "").suffix.lower()
    if not suffix or not suffix[1:].isalnum():
        suffix = MIME_EXTENSIONS.get(mime_type, "")
        if not suffix and mime_type.startswith(IMAGE_MIME_PREFIX):
            subtype = mime_type[len(IMAGE_MIME_PREFIX):]
            suffix = f".{subtype}" if subtype.isalnum() else ""
    if not suffix:
        suffix = FORMAT_EXTENSIONS.get(image_format or "", ".png")
    return ".jpg" if suffix == ".jpeg" else suffix


def format_for_extension(extension: str) -> Optional[str]:
    """Return the Pillow format an extension names, or None if it names none we write."""
    return EXTENSION_FORMATS.get(extension.lower())


async def read_image_bytes(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an uploaded file, stopping one byte past the size ceiling.

    Raises:
        PayloadTooLarge: If the upload is larger than `max_bytes`.
    """
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        # Report at least the ceiling plus one; the rest is never read.
        size = upload.size if upload.size is not None else len(data)
        raise PayloadTooLarge(size, max_bytes)
    return data
