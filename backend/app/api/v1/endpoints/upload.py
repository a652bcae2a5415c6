# backend/app/api/v1/endpoints/upload.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse

from backend.app.api import deps
from backend.app.core.config import settings
from backend.app.core.errors import MissingInput, NotFound
from backend.app.security.sessions import SessionManager
from backend.app.services.uploads import store_image
from backend.app.storage.blob import BlobStore

router = APIRouter()


@router.post("/upload-image")
async def upload_image(
        file: Optional[UploadFile] = File(None),
        path: Optional[str] = Form(None),
        session_token: Optional[str] = Form(None, alias="sessionToken"),
        sessions: SessionManager = Depends(deps.get_session_manager),
        blobs: BlobStore = Depends(deps.get_blob_store),
):
    if file is None or not path:
        raise MissingInput("Missing required fields: file, path")

    await deps.authorize_session(sessions, session_token)

    # One byte over the limit is enough to reject without reading everything
    data = await file.read(settings.UPLOAD_MAX_BYTES + 1)
    public_url = await store_image(blobs, path, data)
    return {"success": True, "path": path, "publicUrl": public_url}


@router.get("/media/{path:path}")
async def get_media(path: str, blobs: BlobStore = Depends(deps.get_blob_store)):
    """Public read of an uploaded image with its sniffed content type."""
    found = await blobs.get(path)
    if found is None:
        raise NotFound("Image not found")
    file_path, content_type = found
    return FileResponse(file_path, media_type=content_type)
