"""
Upload decoding. Turns a base64 payload (raw or data URL) into a SourceImage
the model accepts, converting other formats to JPEG with Pillow.
"""

import base64
import binascii
import logging
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from ..schemas.styling import SourceImage

logger = logging.getLogger(__name__)

SUPPORTED_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}

_PIL_FORMAT_MIME = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}


def is_supported_image_format(mime_type: str) -> bool:
    return mime_type.lower() in SUPPORTED_MIME_TYPES


def split_data_url(data: str) -> tuple[Optional[str], str]:
    """Split 'data:image/png;base64,....' into (mime_type, payload). Raw base64 → (None, data)."""
    if data.startswith("data:") and "," in data:
        header, payload = data.split(",", 1)
        mime = header[len("data:"):].split(";", 1)[0] or None
        return mime, payload
    if "," in data:
        return None, data.split(",", 1)[1]
    return None, data


def convert_to_jpeg(raw: bytes, quality: int = 90) -> bytes:
    with Image.open(BytesIO(raw)) as img:
        buffer = BytesIO()
        img.convert("RGB").save(buffer, "JPEG", quality=quality)
        return buffer.getvalue()


def decode_upload(data: str, max_bytes: Optional[int] = None) -> SourceImage:
    """
    Decode an uploaded photo. Raises ValueError if it is not a readable image
    or is larger than max_bytes.
    """
    url_mime, payload = split_data_url(data.strip())
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ValueError("이미지 파일을 처리하는 데 실패했습니다. 다른 파일을 시도해 주세요.")

    if not raw:
        raise ValueError("Empty image")
    if max_bytes is not None and len(raw) > max_bytes:
        raise ValueError(f"Image too large (max {max_bytes // (1024 * 1024)}MB)")

    try:
        with Image.open(BytesIO(raw)) as img:
            image_format = img.format or ""
    except UnidentifiedImageError:
        raise ValueError("이미지 파일을 읽는 중 오류가 발생했습니다.")

    # The declared type is only a hint; the bytes decide.
    mime = _PIL_FORMAT_MIME.get(image_format)
    if mime is None or not is_supported_image_format(mime):
        logger.info("Converting %s upload (declared %s) to JPEG", image_format or "unknown", url_mime)
        raw = convert_to_jpeg(raw)
        mime = "image/jpeg"

    return SourceImage(base64=base64.b64encode(raw).decode("ascii"), mime_type=mime)
