from __future__ import annotations
import io
from PIL import Image, UnidentifiedImageError
from hunt_api.errors import ValidationError


ALLOWED_MIME = {"image/jpeg", "image/png"}
EXT_FOR_MIME = {"image/jpeg": "jpg", "image/png": "png"}
_MIME_FOR_FORMAT = {"JPEG": "image/jpeg", "PNG": "image/png"}

def sniff_mime(data: bytes) -> str | None:
    # trust the bytes, not the client's Content-Type
    try:
        with Image.open(io.BytesIO(data)) as img:
            return _MIME_FOR_FORMAT.get(img.format)
    except (UnidentifiedImageError, OSError):
        return None

def check_image(data: bytes, max_bytes: int) -> str:
    """Returns the detected mime type or raises ValidationError."""
    if not data:
        raise ValidationError("Empty upload")
    if len(data) > max_bytes:
        raise ValidationError(f"Image exceeds {max_bytes} bytes")
    mime = sniff_mime(data)
    if mime not in ALLOWED_MIME:
        raise ValidationError("Unsupported image type; use JPEG or PNG")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise ValidationError("Invalid image file")
    return mime

def ext_for_mime(mime: str) -> str:
    return EXT_FOR_MIME.get(mime, "bin")
