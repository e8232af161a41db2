"""
images.py — Normalise uploaded images before they are attached to Gemini requests.

Uploads arrive as raw bytes (Telegram photo, file on disk) or as data URLs.
Gemini accepts JPEG/PNG/WebP inline parts; anything else is re-encoded to
JPEG, and oversized images are downscaled so requests stay small.
"""

from __future__ import annotations

import base64
import binascii
import io
from pathlib import Path
from typing import Tuple, Union

from PIL import Image, UnidentifiedImageError

from .errors import UserInputError
from .settings import MAX_UPLOAD_EDGE

_PASSTHROUGH = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp"}

ImageSource = Union[bytes, str, Path]


def to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def from_base64(payload: str) -> bytes:
    """Decode base64, tolerating a `data:<mime>;base64,` prefix."""
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise UserInputError(f"Image payload is not valid base64: {e}") from e


def load_image_bytes(source: ImageSource) -> bytes:
    """Accept raw bytes, a file path, or a base64 / data-URL string."""
    if isinstance(source, bytes):
        return source
    if isinstance(source, Path):
        return source.read_bytes()
    if source.startswith("data:"):
        return from_base64(source)
    if len(source) < 1024 and _is_file(source):
        return Path(source).expanduser().read_bytes()
    return from_base64(source)


def _is_file(source: str) -> bool:
    try:
        return Path(source).expanduser().is_file()
    except (OSError, ValueError):
        # Name too long or embedded NUL: not a path
        return False


def prepare_image(data: bytes) -> Tuple[bytes, str]:
    """
    Return (bytes, mime_type) ready for a Gemini inline part.

    Raises UserInputError if the bytes are not a decodable image.
    """
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except Image.DecompressionBombError as e:
        raise UserInputError(f"Image is too large to process: {e}") from e
    except (UnidentifiedImageError, OSError) as e:
        raise UserInputError(f"Unsupported or corrupt image: {e}") from e

    fmt = (img.format or "").upper()
    too_big = max(img.size) > MAX_UPLOAD_EDGE

    if fmt in _PASSTHROUGH and not too_big:
        return data, _PASSTHROUGH[fmt]

    if too_big:
        img.thumbnail((MAX_UPLOAD_EDGE, MAX_UPLOAD_EDGE), Image.LANCZOS)

    out_fmt = fmt if fmt in _PASSTHROUGH else "JPEG"
    if out_fmt == "JPEG" and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    buf = io.BytesIO()
    if out_fmt == "JPEG":
        img.save(buf, format=out_fmt, quality=90)
    else:
        img.save(buf, format=out_fmt)
    return buf.getvalue(), _PASSTHROUGH[out_fmt]
