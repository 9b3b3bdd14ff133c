"""Encode and decode gallery metadata documents.

A document is a front-matter style header of `key: value` lines between two
`---` delimiter lines, followed by a free-form body that is reserved for a
future description and must survive updates untouched:

    ---
    title: Cat
    image: /images/1700000000000-1a2b3c4d_original.png
    modalImage: /images/1700000000000-1a2b3c4d_modal.png
    thumbnailImage: /images/1700000000000-1a2b3c4d_thumb.png
    uploadDate: 2023-11-14T22:13:20.000Z
    ---
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping

from models.errors import MalformedDocument
from models.image_record import ImageRecord

DELIMITER = "---"
KEY_SEPARATOR = ": "

# Header keys in the order they are written for new records.
RECORD_KEYS = ("title", "image", "modalImage", "thumbnailImage", "uploadDate")
REQUIRED_KEYS = ("title", "image", "uploadDate")


@dataclass
class MetadataDocument:
    """Parsed document: ordered header mapping plus the verbatim body."""

    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""


def _single_line(value: str) -> str:
    return " ".join(str(value).splitlines())


def encode(headers: Mapping[str, str], body: str = "") -> str:
    """Render headers (in mapping order) and body into document text."""
    lines = [DELIMITER]
    lines.extend(f"{key}{KEY_SEPARATOR}{_single_line(value)}" for key, value in headers.items())
    lines.append(DELIMITER)
    return "\n".join(lines) + "\n" + body


def decode(text: str) -> MetadataDocument:
    """Parse document text into its header mapping and body.

    The header ends at the first line consisting only of the delimiter. Each
    header line is split on the first `": "`; later occurrences stay in the
    value. Blank lines and lines without a separator are skipped.

    Raises:
        MalformedDocument: If no closing delimiter line exists.
    """
    lines = text.replace("\r\n", "\n").split("\n")
    if lines and lines[0] == DELIMITER:
        lines = lines[1:]

    try:
        end = lines.index(DELIMITER)
    except ValueError as exc:
        raise MalformedDocument("Metadata document has no closing delimiter") from exc

    headers: Dict[str, str] = {}
    for line in lines[:end]:
        if not line.strip() or KEY_SEPARATOR not in line:
            continue
        key, value = line.split(KEY_SEPARATOR, 1)
        headers[key.strip()] = value

    return MetadataDocument(headers=headers, body="\n".join(lines[end + 1:]))


def merge_update(text: str, updates: Mapping[str, str]) -> str:
    """Overwrite only the supplied header keys and keep everything else verbatim."""
    document = decode(text)
    document.headers.update(updates)
    return encode(document.headers, document.body)


def encode_record(record: ImageRecord, body: str = "") -> str:
    """Render a new record's document."""
    headers = {
        "title": record.title,
        "image": record.original_path,
        "modalImage": record.modal_path,
        "thumbnailImage": record.thumbnail_path,
        "uploadDate": record.upload_date,
    }
    return encode(headers, body)


def decode_record(record_id: str, text: str) -> ImageRecord:
    """Project a stored document into an ImageRecord.

    Documents written before derived sizes existed only carry `image`; their
    modal and thumbnail paths fall back to the original.

    Raises:
        MalformedDocument: If the document cannot be parsed or lacks a required key.
    """
    headers = decode(text).headers
    missing = [key for key in REQUIRED_KEYS if not headers.get(key)]
    if missing:
        raise MalformedDocument(f"Metadata document {record_id} is missing {', '.join(missing)}")

    original = headers["image"]
    return ImageRecord(
        id=record_id,
        title=headers["title"],
        original_path=original,
        modal_path=headers.get("modalImage") or original,
        thumbnail_path=headers.get("thumbnailImage") or original,
        upload_date=headers["uploadDate"],
    )
