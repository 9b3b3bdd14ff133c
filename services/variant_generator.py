"""Derived image size generator.

Provides a small OOP wrapper around Pillow that turns one uploaded image into
the three files a gallery record references: the untouched original, a
variant bounded for the modal viewer, and a grid thumbnail. Both derived
sizes fit within their bounding box while preserving aspect ratio, and an
image already inside the box is never enlarged.

Public class: `VariantGenerator`

Example:
    gen = VariantGenerator(modal_size=(800, 800), thumbnail_size=(280, 280))
    variants = gen.generate(raw_bytes)
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from models.errors import UnsupportedFormat

LOGGER = logging.getLogger(__name__)

# Formats Pillow can write back out; anything else is re-encoded as PNG.
_WRITABLE_FORMATS = {"JPEG", "PNG", "WEBP", "GIF", "BMP", "TIFF"}
_JPEG_MODES = {"RGB", "L", "CMYK"}
# Multi-picture JPEGs from phone cameras are written back as plain JPEG.
_FORMAT_ALIASES = {"MPO": "JPEG"}


@dataclass
class ImageVariants:
    """Byte streams for every size of one upload."""

    original: bytes
    modal: bytes
    thumbnail: bytes
    image_format: str

    def dimensions(self, which: str) -> Tuple[int, int]:
        """Return (width, height) of the `original`, `modal` or `thumbnail` bytes."""
        with Image.open(io.BytesIO(getattr(self, which))) as img:
            return img.size


class VariantGenerator:
    """Generate modal and thumbnail sizes from raw image bytes.

    Args:
        modal_size: Bounding box for the modal viewer variant. Defaults to (800, 800).
        thumbnail_size: Bounding box for the grid thumbnail. Defaults to (280, 280).
        jpeg_quality: Quality used when the derived sizes are encoded as JPEG.
    """

    def __init__(
        self,
        modal_size: Tuple[int, int] = (800, 800),
        thumbnail_size: Tuple[int, int] = (280, 280),
        jpeg_quality: int = 85,
    ):
        self.modal_size = modal_size
        self.thumbnail_size = thumbnail_size
        self.jpeg_quality = jpeg_quality

    def generate(self, data: bytes, image_format: Optional[str] = None) -> ImageVariants:
        """Produce the original, modal and thumbnail byte streams.

        Args:
            data: Raw bytes of the uploaded image.
            image_format: Pillow format name to encode the derived sizes in,
                normally the one the stored filenames' extension names. The
                decoded source format is used when omitted or not writable.

        Returns:
            An `ImageVariants` whose `original` is `data` unchanged.

        Raises:
            UnsupportedFormat: If the bytes cannot be decoded as an image.
        """
        try:
            src = Image.open(io.BytesIO(data))
            src.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise UnsupportedFormat("Uploaded bytes are not a supported image format") from exc

        with src:
            fmt = image_format if image_format in _WRITABLE_FORMATS else _FORMAT_ALIASES.get(src.format, src.format)
            if fmt not in _WRITABLE_FORMATS:
                fmt = "PNG"
            # Rotate according to the EXIF orientation so derived sizes display upright.
            oriented = ImageOps.exif_transpose(src)
            modal = self._fit_within(oriented, self.modal_size, fmt)
            thumbnail = self._fit_within(oriented, self.thumbnail_size, fmt)

        LOGGER.debug("Generated variants for %s image of %sx%s", fmt, *oriented.size)
        return ImageVariants(original=data, modal=modal, thumbnail=thumbnail, image_format=fmt)

    def _fit_within(self, src: Image.Image, bounds: Tuple[int, int], fmt: str) -> bytes:
        """Shrink a copy of `src` to fit `bounds` and encode it in `fmt`."""
        img = src.copy()
        # Image.thumbnail only ever shrinks, which gives the no-enlargement policy.
        img.thumbnail(bounds, Image.LANCZOS)

        save_kwargs = {}
        if fmt == "JPEG":
            if img.mode not in _JPEG_MODES:
                img = img.convert("RGB")
            save_kwargs.update({"quality": self.jpeg_quality, "optimize": True})
        else:
            if img.mode == "CMYK":
                img = img.convert("RGB")
            if fmt == "PNG":
                save_kwargs["optimize"] = True

        out_io = io.BytesIO()
        img.save(out_io, format=fmt, **save_kwargs)
        return out_io.getvalue()
