# app/services/image_service.py - Product image storage on local disk

import io
import os
import uuid
import logging
from typing import List, Optional

from PIL import Image, UnidentifiedImageError
from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads/"
ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}


def basic_image_optimization(image_bytes: bytes, max_size: tuple) -> bytes:
    image = Image.open(io.BytesIO(image_bytes))
    if image.mode in ('RGBA', 'LA', 'P'):
        image = image.convert('RGB')
    image.thumbnail(max_size, Image.Resampling.LANCZOS)
    buf = io.BytesIO()
    image.save(buf, format="JPEG", quality=85, optimize=True)
    buf.seek(0)
    return buf.getvalue()


def validate_image(content: bytes, filename: str, content_type: Optional[str]) -> str:
    """Check type, size and decodability. Returns the lower-cased extension."""
    extension = os.path.splitext(filename or "")[1].lower()
    if extension not in ALLOWED_EXTENSIONS or content_type not in settings.allowed_image_type_list:
        raise ValidationError("Only image files are allowed")

    if len(content) > settings.MAX_FILE_SIZE:
        raise ValidationError(f"Image {filename} exceeds the {settings.MAX_FILE_SIZE} byte limit")

    try:
        with Image.open(io.BytesIO(content)) as image:
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise ValidationError(f"File {filename} is not a valid image")

    return extension


def _needs_downscale(content: bytes) -> bool:
    with Image.open(io.BytesIO(content)) as image:
        width, height = image.size
    return max(width, height) > settings.MAX_IMAGE_DIMENSION


async def save_product_images(images: Optional[List[UploadFile]]) -> List[str]:
    """Validate and store uploaded images, returning their public URLs.

    Nothing is written unless every image is valid.
    """
    uploads = [img for img in (images or []) if img is not None and img.filename]
    if len(uploads) > settings.MAX_IMAGES_PER_PRODUCT:
        raise ValidationError(f"At most {settings.MAX_IMAGES_PER_PRODUCT} images are allowed")

    prepared = []
    for img in uploads:
        content = await img.read()
        extension = validate_image(content, img.filename, img.content_type)
        if _needs_downscale(content):
            limit = settings.MAX_IMAGE_DIMENSION
            content = basic_image_optimization(content, (limit, limit))
            extension = ".jpg"
        prepared.append((content, extension))

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    urls = []
    for content, extension in prepared:
        filename = f"{uuid.uuid4().hex}{extension}"
        with open(os.path.join(settings.UPLOAD_DIR, filename), "wb") as f:
            f.write(content)
        urls.append(f"{UPLOAD_URL_PREFIX}{filename}")

    logger.info(f"Stored {len(urls)} product image(s)")
    return urls


def delete_product_images(image_urls: Optional[List[str]]) -> None:
    """Remove stored files for the given URLs; missing files are skipped."""
    for url in image_urls or []:
        if not url or not url.startswith(UPLOAD_URL_PREFIX):
            continue
        path = os.path.join(settings.UPLOAD_DIR, os.path.basename(url))
        if os.path.exists(path):
            os.remove(path)
            logger.debug(f"Deleted image {path}")
