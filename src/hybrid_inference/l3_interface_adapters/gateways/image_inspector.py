"""Gateway: image validation and MIME sniffing with Pillow."""

from __future__ import annotations

import base64
import io

from PIL import Image, UnidentifiedImageError

from hybrid_inference.l1_entities.errors import ImageDecodeError

SUPPORTED_FORMATS = frozenset({'PNG', 'JPEG', 'GIF', 'WEBP', 'BMP', 'TIFF'})


def image_mime_type(data: bytes) -> str:
    """Return the MIME type of encoded image bytes. Raises ImageDecodeError if unreadable."""
    if not data:
        raise ImageDecodeError('Image data is empty')
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise ImageDecodeError(f'Cannot decode image: {exc}') from exc
    if fmt not in SUPPORTED_FORMATS:
        raise ImageDecodeError(f'Unsupported image format: {fmt}')
    return Image.MIME[fmt]


def image_data_url(data: bytes) -> str:
    """Encode image bytes as a ``data:`` URL for chat-style vision APIs."""
    return f'data:{image_mime_type(data)};base64,{base64.b64encode(data).decode("ascii")}'
