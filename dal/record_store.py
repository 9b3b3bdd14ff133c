"""Async flat-file data access layer for gallery records.

The backing directory is the datastore: every record is one `{id}.md`
metadata document plus three sibling binaries named `{id}_original{ext}`,
`{id}_modal{ext}` and `{id}_thumb{ext}`. There is no index, lock or
transaction; safety comes from unique ids and one writer per file.

`RecordStorage` is the interface the ingestion pipeline and controllers
depend on, so another backend can replace `FlatFileRecordStore`.
"""

from __future__ import annotations

import abc
import logging
import re
import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import List

import aiofiles
import aiofiles.os

from models.errors import InvalidInput, IOFailure, MalformedDocument, NotFound
from models.image_record import ImageRecord
from services import metadata_codec
from services.variant_generator import ImageVariants

LOGGER = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".md"
VARIANT_SUFFIXES = {"original": "_original", "modal": "_modal", "thumbnail": "_thumb"}
RECORD_ID_PATTERN = r"[A-Za-z0-9_-]+"
_SAFE_ID = re.compile(rf"^{RECORD_ID_PATTERN}$")
TEMP_SUFFIX = ".tmp"


def _sort_key(record: ImageRecord) -> datetime:
    """Parse `upload_date` for ordering; unparseable dates sort oldest."""
    try:
        parsed = datetime.fromisoformat(record.upload_date.replace("Z", "+00:00"))
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class RecordStorage(abc.ABC):
    """Storage operations for gallery records."""

    url_prefix = "/images"

    def variant_filename(self, record_id: str, variant: str, extension: str) -> str:
        """Return e.g. `{id}_thumb.png` for the `thumbnail` variant."""
        return f"{record_id}{VARIANT_SUFFIXES[variant]}{extension}"

    def web_path(self, filename: str) -> str:
        """Return the web-servable path stored in documents for `filename`."""
        return f"{self.url_prefix}/{filename}"

    @abc.abstractmethod
    async def list_records(self) -> List[ImageRecord]:
        """Return every record, newest upload first."""

    @abc.abstractmethod
    async def get_record(self, record_id: str) -> ImageRecord:
        """Return one record or raise NotFound."""

    @abc.abstractmethod
    async def update_title(self, record_id: str, title: str) -> ImageRecord:
        """Replace a record's title and return the updated record."""

    @abc.abstractmethod
    async def delete_record(self, record_id: str) -> None:
        """Remove a record and its binaries."""

    @abc.abstractmethod
    async def create_record(self, record: ImageRecord, variants: ImageVariants) -> None:
        """Persist the binaries of a new record, then its document."""


class FlatFileRecordStore(RecordStorage):
    """Directory-backed record store.

    Args:
        images_dir: Directory holding documents and binaries.
        url_prefix: Web path under which `images_dir` is served; stored paths
            in documents start with it.
    """

    def __init__(self, images_dir: Path | str, url_prefix: str = "/images") -> None:
        self.images_dir = Path(images_dir)
        self.url_prefix = "/" + url_prefix.strip("/")

    def document_path(self, record_id: str) -> Path:
        """Return the document path for `record_id`, rejecting unsafe ids."""
        if not record_id or not _SAFE_ID.match(record_id):
            raise NotFound(record_id)
        return self.images_dir / f"{record_id}{DOCUMENT_SUFFIX}"

    def binary_path(self, web_path: str) -> Path:
        """Map a stored web path back onto the images directory."""
        return self.images_dir / Path(web_path).name

    async def _read_document(self, record_id: str) -> str:
        path = self.document_path(record_id)
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                return await f.read()
        except FileNotFoundError as exc:
            raise NotFound(record_id) from exc
        except OSError as exc:
            raise IOFailure(f"Failed to read metadata for {record_id}") from exc

    async def _write_file(self, path: Path, data: bytes | str) -> None:
        mode = "wb" if isinstance(data, bytes) else "w"
        kwargs = {} if isinstance(data, bytes) else {"encoding": "utf-8"}
        try:
            async with aiofiles.open(path, mode, **kwargs) as f:
                await f.write(data)
        except OSError as exc:
            raise IOFailure(f"Failed to write {path.name}") from exc

    async def _write_document(self, record_id: str, text: str, must_exist: bool = False) -> None:
        """Write a document under a temporary name, then rename it into place.

        Readers only ever see the previous or the complete new document. The
        temporary name does not end in `.md`, so listings never pick it up.

        Raises:
            NotFound: If `must_exist` and the document was deleted meanwhile.
        """
        path = self.document_path(record_id)
        tmp = path.with_name(f"{path.name}.{secrets.token_hex(4)}{TEMP_SUFFIX}")
        await self._write_file(tmp, text)
        try:
            if must_exist and not await aiofiles.os.path.exists(path):
                raise NotFound(record_id)
            await aiofiles.os.replace(tmp, path)
        except OSError as exc:
            raise IOFailure(f"Failed to store metadata for {record_id}") from exc
        finally:
            if await aiofiles.os.path.exists(tmp):
                await aiofiles.os.remove(tmp)

    async def list_records(self) -> List[ImageRecord]:
        """Decode every document in the directory, newest upload first.

        A single undecodable document fails the whole listing.

        Raises:
            MalformedDocument: If any document cannot be parsed.
            IOFailure: If the directory or a document cannot be read.
        """
        try:
            names = await aiofiles.os.listdir(self.images_dir)
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise IOFailure("Failed to scan the images directory") from exc

        records: List[ImageRecord] = []
        for name in names:
            if not name.endswith(DOCUMENT_SUFFIX):
                continue
            record_id = name[: -len(DOCUMENT_SUFFIX)]
            try:
                text = await self._read_document(record_id)
            except NotFound:
                # Deleted between the scan and the read.
                continue
            try:
                records.append(metadata_codec.decode_record(record_id, text))
            except MalformedDocument:
                LOGGER.error("Unreadable metadata document %s", name)
                raise

        records.sort(key=_sort_key, reverse=True)
        return records

    async def get_record(self, record_id: str) -> ImageRecord:
        """Return the record stored under `record_id`.

        Raises:
            NotFound: If no document exists for the id.
        """
        text = await self._read_document(record_id)
        return metadata_codec.decode_record(record_id, text)

    async def update_title(self, record_id: str, title: str) -> ImageRecord:
        """Rewrite only the `title` header; other keys and the body are kept.

        Raises:
            InvalidInput: If `title` is empty; the document is left untouched.
            NotFound: If no document exists for the id, or it is deleted before the
                new title is written.
        """
        title = (title or "").strip()
        if not title:
            raise InvalidInput("Title is required")
        text = await self._read_document(record_id)
        updated = metadata_codec.merge_update(text, {"title": title})
        # A delete racing this update must not bring the document back without its binaries.
        await self._write_document(record_id, updated, must_exist=True)
        LOGGER.info("Updated title of image %s", record_id)
        return metadata_codec.decode_record(record_id, updated)

    async def delete_record(self, record_id: str) -> None:
        """Remove the document, then each binary it references.

        Binary removal is best-effort: a binary already gone does not fail the
        delete, since the record no longer exists once its document is removed.

        Raises:
            NotFound: If no document exists for the id.
        """
        record = metadata_codec.decode_record(record_id, await self._read_document(record_id))

        try:
            await aiofiles.os.remove(self.document_path(record_id))
        except FileNotFoundError as exc:
            raise NotFound(record_id) from exc
        except OSError as exc:
            raise IOFailure(f"Failed to delete metadata for {record_id}") from exc

        for web_path in {record.original_path, record.modal_path, record.thumbnail_path}:
            path = self.binary_path(web_path)
            try:
                await aiofiles.os.remove(path)
            except FileNotFoundError:
                LOGGER.warning("Binary %s for image %s was already missing", path.name, record_id)
            except OSError:
                LOGGER.exception("Failed to delete binary %s for image %s", path.name, record_id)

        LOGGER.info("Deleted image %s", record_id)

    async def create_record(self, record: ImageRecord, variants: ImageVariants) -> None:
        """Write the three binaries, then the document that references them.

        A failure after some binaries are written leaves them orphaned; see
        `utils.orphan_cleaner.OrphanCleaner`.
        """
        try:
            await aiofiles.os.makedirs(self.images_dir, exist_ok=True)
        except OSError as exc:
            raise IOFailure("Failed to create the images directory") from exc

        for web_path, data in (
            (record.original_path, variants.original),
            (record.modal_path, variants.modal),
            (record.thumbnail_path, variants.thumbnail),
        ):
            await self._write_file(self.binary_path(web_path), data)

        await self._write_document(record.id, metadata_codec.encode_record(record))
        LOGGER.info("Stored image %s (%s)", record.id, record.title)

