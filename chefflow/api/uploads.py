"""
Serves stored recipe images by their download URL
"""
import os

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from chefflow.services.image_storage import ImageStorageError, resolve_upload

router = APIRouter()


@router.get("/{file_path:path}")
async def download_upload(file_path: str):
    """Download URLs are unauthenticated so they can be embedded in <img> tags"""
    try:
        real_path = resolve_upload(file_path)
    except ImageStorageError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    if not os.path.isfile(real_path):
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path=real_path)
