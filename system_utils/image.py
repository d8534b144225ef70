"""
Image utilities for system_utils package.
Handles decoding provider downloads and encoding covers for embedding.
"""
from __future__ import annotations

import io
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from cover_search.models import CandidateImage
from logging_config import get_logger

logger = get_logger(__name__)

# Anything smaller is an error page or a placeholder, not a cover
MIN_IMAGE_BYTES = 100
JPEG_QUALITY = 92


def get_image_extension(data: bytes) -> str:
    """Detect image format from file header bytes."""
    if data.startswith(b'\xff\xd8'):
        return '.jpg'
    if data.startswith(b'\x89PNG\r\n\x1a\n'):
        return '.png'
    if data.startswith(b'BM'):
        return '.bmp'
    if data.startswith(b'GIF8'):
        return '.gif'
    if data[8:12] == b'WEBP':
        return '.webp'
    return '.jpg'


def get_mime_type(data: bytes) -> str:
    ext = get_image_extension(data)
    return {
        '.jpg': 'image/jpeg',
        '.png': 'image/png',
        '.bmp': 'image/bmp',
        '.gif': 'image/gif',
        '.webp': 'image/webp',
    }[ext]


def decode_image(data: bytes, source: str = "", url: str = "") -> Optional[CandidateImage]:
    """
    Decode raw bytes into a CandidateImage.

    Args:
        data: Image file bytes
        source: Provider name
        url: Where the bytes came from

    Returns:
        CandidateImage, or None if the bytes are not a usable image
    """
    if not data or len(data) < MIN_IMAGE_BYTES:
        logger.debug(f"Refusing to decode empty/tiny image from {url or source} ({len(data) if data else 0} bytes)")
        return None

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            # Covers are embedded as JPEG, so drop alpha/palette modes up front
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            else:
                img = img.copy()
    except (UnidentifiedImageError, OSError) as e:
        logger.debug(f"Could not decode image from {url or source}: {e}")
        return None

    return CandidateImage(image=img, source=source, url=url)


def encode_image(candidate: CandidateImage, fmt: str = "JPEG") -> Tuple[bytes, str]:
    """
    Encode a candidate for embedding.

    Returns:
        Tuple of (bytes, mime type)
    """
    img = candidate.image
    if fmt.upper() == "JPEG" and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    buffer = io.BytesIO()
    if fmt.upper() == "JPEG":
        img.save(buffer, format="JPEG", quality=JPEG_QUALITY, optimize=True)
        return buffer.getvalue(), "image/jpeg"

    img.save(buffer, format="PNG", optimize=True)
    return buffer.getvalue(), "image/png"
