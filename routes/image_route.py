from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from pydantic import BaseModel

from controllers.image_controller import delete_image, get_image, list_images, update_image, upload_image
from services.gallery_source import GalleryMode

router = APIRouter(prefix="/api", tags=["images"])


class TitlePayload(BaseModel):
	title: Optional[str] = None


@router.get("/images")
async def list_images_route(request: Request, mode: GalleryMode = GalleryMode.LIVE):
	"""Return every image summary, newest upload first."""
	try:
		return await list_images(request, mode)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail="Failed to fetch images") from exc


@router.get("/images/{image_id}")
async def get_image_route(request: Request, image_id: str):
	"""Return one image summary."""
	try:
		return await get_image(request, image_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail="Failed to fetch image") from exc


@router.post("/upload")
async def upload_route(
	request: Request,
	file: Optional[UploadFile] = File(None),
	title: Optional[str] = Form(None),
	mode: GalleryMode = GalleryMode.LIVE,
):
	"""Store an uploaded image under a title and derive its display sizes."""
	try:
		return await upload_image(request, file, title, mode)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail="Upload failed") from exc


@router.put("/images/{image_id}")
async def update_route(
	request: Request, image_id: str, payload: TitlePayload, mode: GalleryMode = GalleryMode.LIVE
):
	"""Change the title of a stored image."""
	try:
		return await update_image(request, image_id, payload.title, mode)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail="Failed to update title") from exc


@router.delete("/images/{image_id}")
async def delete_route(request: Request, image_id: str, mode: GalleryMode = GalleryMode.LIVE):
	"""Delete a stored image."""
	try:
		return await delete_image(request, image_id, mode)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail="Failed to delete image") from exc
