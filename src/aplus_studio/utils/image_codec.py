"""Conversions between image files, raw bytes and data URIs.

The generative service takes the bare base64 payload while everything shown to
the user (and stored in history) is a full `data:<mime>;base64,<payload>` URI.
"""

from __future__ import annotations

import base64
import binascii
import io
import re
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from aplus_studio.exceptions import ValidationError

DEFAULT_MIME = "image/png"
MIME_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}
_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<b64>;base64)?,(?P<payload>.*)$", re.S
)


def encode_data_uri(data: bytes, mime_type: str = DEFAULT_MIME) -> str:
    """Build a base64 data URI from raw bytes."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_uri(uri: str) -> tuple[bytes, str]:
    """Split a data URI into (bytes, mime type).

    Raises:
        ValidationError: If the string is not a base64 data URI.
    """
    m = _DATA_URI_RE.match(uri.strip())
    if not m or not m.group("b64"):
        raise ValidationError("Not a base64 data URI", uri[:40])
    try:
        data = base64.b64decode(m.group("payload"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Invalid base64 payload in data URI", str(e)) from e
    return data, m.group("mime") or DEFAULT_MIME


def sniff_mime_type(data: bytes) -> str:
    """Detect the image mime type with Pillow.

    Raises:
        ValidationError: If the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError("File is not a supported image", str(e)) from e
    return Image.MIME.get(fmt or "", DEFAULT_MIME)


def read_image_file(path: Path) -> tuple[bytes, str]:
    """Read an image file, returning its bytes and detected mime type."""
    if not path.is_file():
        raise ValidationError(f"Image not found: {path}")
    data = path.read_bytes()
    return data, sniff_mime_type(data)


def extension_for(mime_type: str) -> str:
    return MIME_EXTENSIONS.get(mime_type, ".png")
