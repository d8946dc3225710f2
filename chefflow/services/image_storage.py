"""
Recipe image storage - Pillow compression and on-disk layout under UPLOAD_DIR
"""
import io
import logging
import os
import secrets
import time

from PIL import Image, UnidentifiedImageError

from chefflow.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"}

UPLOAD_URL_PREFIX = "/api/uploads"


class ImageStorageError(Exception):
    """Raised for uploads that cannot be stored (bad type, too large, bad path)"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def compress_image(content: bytes, max_dimension: int = None, quality: int = None) -> tuple[bytes, bool]:
    """
    Shrink an image so its longest side is at most max_dimension and re-encode as JPEG.

    Returns (bytes, compressed). Undecodable input is returned unchanged with
    compressed=False.
    """
    max_dimension = max_dimension or settings.IMAGE_MAX_DIMENSION
    quality = quality or settings.IMAGE_JPEG_QUALITY

    try:
        with Image.open(io.BytesIO(content)) as img:
            img.load()
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            img.thumbnail((max_dimension, max_dimension))

            out = io.BytesIO()
            img.save(out, format="JPEG", quality=quality)
            return out.getvalue(), True
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning(f"Image compression failed, keeping original bytes: {e}")
        return content, False


def _unique_filename(ext: str) -> str:
    return f"{int(time.time() * 1000)}_{secrets.token_hex(4)}{ext}"


def save_image(restaurant_id: str, folder: str, filename: str, content: bytes) -> str:
    """
    Validate, compress and store an uploaded image.

    Returns the download URL ``/api/uploads/<restaurant>/<folder>/<file>``.
    """
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise ImageStorageError(f"File type '{ext or filename}' not allowed.")
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise ImageStorageError(
            f"File too large. Maximum size: {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB",
            status_code=413,
        )

    folder = validate_folder_name(folder)
    restaurant_dir = validate_upload_path(os.path.join(settings.UPLOAD_DIR, restaurant_id))
    target_dir = validate_upload_path(os.path.join(restaurant_dir, folder))
    if os.path.dirname(target_dir) != restaurant_dir:
        raise ImageStorageError("Access denied", status_code=403)

    data, compressed = compress_image(content)
    if compressed:
        ext = ".jpg"

    os.makedirs(target_dir, exist_ok=True)

    name = _unique_filename(ext)
    with open(os.path.join(target_dir, name), "wb") as f:
        f.write(data)

    logger.info(f"Stored image {name} for {restaurant_id}/{folder} ({len(data)} bytes)")
    return f"{UPLOAD_URL_PREFIX}/{restaurant_id}/{folder}/{name}"


def validate_folder_name(folder: str) -> str:
    """A folder is a single path segment under the restaurant's directory"""
    folder = (folder or "").strip()
    if not folder or folder in (".", "..") or "/" in folder or "\\" in folder or "\x00" in folder:
        raise ImageStorageError(f"Invalid folder name '{folder}'")
    return folder


def validate_upload_path(path: str) -> str:
    """Resolve a path and make sure it stays inside UPLOAD_DIR"""
    real_path = os.path.realpath(path)
    upload_base = os.path.realpath(settings.UPLOAD_DIR)
    if real_path != upload_base and not real_path.startswith(upload_base + os.sep):
        raise ImageStorageError("Access denied", status_code=403)
    return real_path


def resolve_upload(relative_path: str) -> str:
    """Absolute path of a stored file, for serving downloads"""
    return validate_upload_path(os.path.join(settings.UPLOAD_DIR, relative_path))
