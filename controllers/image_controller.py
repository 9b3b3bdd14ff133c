from fastapi import HTTPException, Request, UploadFile
from typing import Any, Dict, List, Optional
from pathlib import Path

from dal.record_store import RecordStorage
from models.errors import GalleryError
from services.gallery_source import GalleryDataSource, GalleryMode
from services.image_store import UploadIngestionPipeline
from services.variant_generator import VariantGenerator
from utils.media_validation import read_image_bytes, validate_title


def _to_http(exc: GalleryError) -> HTTPException:
    """Translate a gallery error into the HTTP status it carries."""
    return HTTPException(status_code=exc.status_code, detail=str(exc))


def _get_store(request: Request) -> RecordStorage:
    """Retrieve the shared record store from the app state."""
    store = getattr(request.app.state, "record_store", None)
    if store is None:
        raise HTTPException(status_code=500, detail="Record store not initialized.")
    return store


def _mutable_store(request: Request, mode: GalleryMode) -> RecordStorage:
    """Return the store for a mutation; editor mode rejects it before any I/O."""
    store = None if mode is GalleryMode.EDITOR else _get_store(request)
    try:
        return GalleryDataSource(store, mode).require_mutations()
    except GalleryError as exc:
        raise _to_http(exc) from exc


async def list_images(request: Request, mode: GalleryMode = GalleryMode.LIVE) -> List[Dict[str, Any]]:
    """Return gallery summaries newest first.

    In editor mode placeholder records are returned and the store is never
    consulted, so the endpoint works without a configured images directory.
    """
    store = None if mode is GalleryMode.EDITOR else _get_store(request)
    source = GalleryDataSource(store, mode)
    try:
        records = await source.list_images()
    except GalleryError as exc:
        raise _to_http(exc) from exc
    return [record.to_summary() for record in records]


async def get_image(request: Request, image_id: str) -> Dict[str, Any]:
    """Return the summary of one stored image."""
    try:
        record = await _get_store(request).get_record(image_id)
    except GalleryError as exc:
        raise _to_http(exc) from exc
    return record.to_summary()


async def upload_image(
    request: Request,
    file: Optional[UploadFile],
    title: Optional[str],
    mode: GalleryMode = GalleryMode.LIVE,
) -> Dict[str, Any]:
    """Handle an image upload: validate, derive sizes, and store the record.

    Args:
        request: FastAPI Request object (used to access app.state).
        file: Uploaded image file.
        title: Title for the new record.
        mode: Rendering mode; uploads are inert in editor mode.

    Returns:
        A dict containing: message, images (original/modal/thumbnail filenames), title, id
    """
    store = _mutable_store(request, mode)
    if file is None or not (title or "").strip():
        raise HTTPException(status_code=400, detail="Missing file or title")

    settings = request.app.state.settings
    pipeline = UploadIngestionPipeline(
        store,
        VariantGenerator(modal_size=settings.modal_size, thumbnail_size=settings.thumbnail_size),
        max_upload_bytes=settings.max_upload_bytes,
    )

    try:
        data = await read_image_bytes(file, settings.max_upload_bytes)
        record = await pipeline.ingest(data, file.content_type, title, filename=file.filename)
    except GalleryError as exc:
        raise _to_http(exc) from exc

    return {
        "message": "Upload successful",
        "id": record.id,
        "images": {
            "original": Path(record.original_path).name,
            "modal": Path(record.modal_path).name,
            "thumbnail": Path(record.thumbnail_path).name,
        },
        "title": record.title,
    }


async def update_image(
    request: Request, image_id: str, title: Optional[str], mode: GalleryMode = GalleryMode.LIVE
) -> Dict[str, Any]:
    """Rename a stored image."""
    store = _mutable_store(request, mode)
    try:
        cleaned = validate_title(title)
        await store.update_title(image_id, cleaned)
    except GalleryError as exc:
        raise _to_http(exc) from exc
    return {"message": "Title updated successfully"}


async def delete_image(request: Request, image_id: str, mode: GalleryMode = GalleryMode.LIVE) -> Dict[str, Any]:
    """Delete a stored image's metadata document and binaries."""
    store = _mutable_store(request, mode)
    try:
        await store.delete_record(image_id)
    except GalleryError as exc:
        raise _to_http(exc) from exc
    return {"message": "Image deleted successfully"}
