"""Validation helpers for uploaded frames."""

import io

from fastapi import HTTPException, UploadFile
from PIL import Image, UnidentifiedImageError

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
}


def normalize_mime_type(content_type: str | None) -> str:
    """Strip MIME parameters and default to JPEG when the type is missing."""
    mime = (content_type or "").lower().split(";", 1)[0].strip()
    return mime or "image/jpeg"


def ensure_decodable_image(image_bytes: bytes) -> None:
    """Raise HTTP 415 unless Pillow can identify the bytes as an image."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise HTTPException(status_code=415, detail="Uploaded file is not a supported image.") from exc


async def read_image_bytes(image_file: UploadFile | None) -> bytes:
    """Read a validated frame upload, ensuring it is a non-empty image."""
    if image_file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    mime_type = normalize_mime_type(image_file.content_type)
    if mime_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(status_code=415, detail=f"Unsupported image content type: {image_file.content_type}")
    image_bytes = await image_file.read()
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")
    ensure_decodable_image(image_bytes)
    return image_bytes
