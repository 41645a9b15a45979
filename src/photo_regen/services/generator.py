"""Variant generation: model calls plus blob uploads."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from photo_regen.domain.results import GeneratedVariant
from photo_regen.services.images import FetchedImage, detect_aspect_ratio
from photo_regen.services.storage import BlobStore, UniqueMillisClock, owner_folder

ALLOWED_VARIANT_COUNTS = (1, 2, 4)
DEFAULT_VARIANT_COUNT = 2
OUTPUT_CONTENT_TYPE = "image/jpeg"
OUTPUT_EXTENSION = "jpg"

logger = logging.getLogger(__name__)


class ImageModelClient(Protocol):
    """Interface for the generative image model."""

    async def generate_image(
        self, *, prompt: str, image: bytes, mime_type: str, aspect_ratio: str
    ) -> bytes:
        """Return the bytes of one generated image."""


def clamp_variant_count(requested: object) -> int:
    """Coerce a requested count into the allowed set, falling back to 2."""
    try:
        count = int(str(requested).strip())
    except ValueError:
        return DEFAULT_VARIANT_COUNT
    return count if count in ALLOWED_VARIANT_COUNTS else DEFAULT_VARIANT_COUNT


def variant_path(owner_tag: str | None, timestamp: int, index: int, total: int) -> str:
    """Return the storage path of one variant; single variants get no index."""
    folder = owner_folder(owner_tag)
    if total == 1:
        return f"{folder}/gemini_{timestamp}.{OUTPUT_EXTENSION}"
    return f"{folder}/gemini_{timestamp}_{index}.{OUTPUT_EXTENSION}"


@dataclass
class ImageGeneratorService:
    """Produce stored variants of one source image."""

    client: ImageModelClient
    blob_store: BlobStore
    clock: Callable[[], int] = field(default_factory=UniqueMillisClock)

    async def generate(  # noqa: PLR0913
        self,
        source: FetchedImage,
        prompt: str,
        variant_count: object,
        owner_tag: str | None,
        source_index: int = 0,
    ) -> list[GeneratedVariant]:
        """Generate variants sequentially and upload each one as JPEG.

        Stops at the first failing variant. Variants stored before the failure
        are returned; the error only propagates when nothing was stored.
        """
        total = clamp_variant_count(variant_count)
        aspect_ratio = detect_aspect_ratio(source.content)
        timestamp = self.clock()
        variants: list[GeneratedVariant] = []
        for index in range(1, total + 1):
            logger.info("Generating variation %s/%s", index, total)
            try:
                image = await self.client.generate_image(
                    prompt=prompt,
                    image=source.content,
                    mime_type=source.mime_type,
                    aspect_ratio=aspect_ratio,
                )
                path = variant_path(owner_tag, timestamp, index, total)
                url = await self.blob_store.put(path, image, OUTPUT_CONTENT_TYPE)
            except Exception as exc:
                if not variants:
                    raise
                logger.warning(
                    "Variation %s/%s failed, keeping %s stored: %s",
                    index,
                    total,
                    len(variants),
                    exc,
                )
                break
            variants.append(GeneratedVariant(source_image_index=source_index, url=url))
            logger.info("Variation %s uploaded: %s", index, url)
        return variants
