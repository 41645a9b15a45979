"""Source image download interface and header inspection."""

import io
from dataclasses import dataclass
from typing import Protocol

from PIL import Image, UnidentifiedImageError

_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
_SQUARE_TOLERANCE = 0.05


@dataclass(frozen=True)
class FetchedImage:
    """Downloaded source image bytes."""

    content: bytes
    mime_type: str


class ImageFetcher(Protocol):
    """Interface for downloading source images."""

    async def fetch(self, url: str) -> FetchedImage:
        """Download an image and return its bytes."""


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(_PNG_SIGNATURE):
        return "image/png"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def detect_aspect_ratio(image_bytes: bytes, default: str = "16:9") -> str:
    """Pick the output aspect ratio matching the source orientation."""
    size = image_dimensions(image_bytes)
    if size is None:
        return default
    width, height = size
    if width <= 0 or height <= 0:
        return default
    if abs(width - height) / max(width, height) <= _SQUARE_TOLERANCE:
        return "1:1"
    return "16:9" if width > height else "9:16"


def image_dimensions(image_bytes: bytes) -> tuple[int, int] | None:
    """Width and height of the image, or None when Pillow cannot read it."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            return image.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        return None
