"""Per-order processing with per-image failure isolation."""

import asyncio
import logging
from dataclasses import dataclass

from photo_regen.domain.orders import SourceImage, WorkItem
from photo_regen.domain.results import GeneratedVariant, ImageError, ItemResult
from photo_regen.services.generator import ImageGeneratorService
from photo_regen.services.images import ImageFetcher

PROMPT_SEPARATOR = ". "

logger = logging.getLogger(__name__)


def build_prompt(default_prompt: str, item_prompt: str, use_default: bool) -> str:
    """Combine the default prompt with the customer's own prompt."""
    if not use_default or not default_prompt:
        return item_prompt
    if not item_prompt:
        return default_prompt
    return f"{default_prompt}{PROMPT_SEPARATOR}{item_prompt}"


@dataclass(frozen=True)
class _ImageAttempt:
    variants: list[GeneratedVariant]
    error: ImageError | None = None


@dataclass
class WorkItemProcessor:
    """Regenerate every source image of one order.

    Images are attempted independently; a failed download or generation is
    recorded against that image and the remaining images still run. At most
    ``max_concurrent_images`` images are in flight at once.
    """

    fetcher: ImageFetcher
    generator: ImageGeneratorService
    max_concurrent_images: int = 1

    async def process(
        self,
        item: WorkItem,
        default_prompt: str,
        use_default: bool,
        variant_count: object,
    ) -> ItemResult:
        """Process one order and classify the result."""
        if not item.source_images:
            logger.info("Skipping %s: no source images", item.id)
            return ItemResult.empty()

        prompt = build_prompt(default_prompt, item.prompt, use_default)
        logger.info(
            "Processing %s images for %s", len(item.source_images), item.id
        )
        semaphore = asyncio.Semaphore(max(1, self.max_concurrent_images))

        async def attempt(index: int, image: SourceImage) -> _ImageAttempt:
            async with semaphore:
                return await self._process_image(
                    item, index, image, prompt, variant_count
                )

        attempts = await asyncio.gather(
            *(
                attempt(index, image)
                for index, image in enumerate(item.source_images)
            )
        )

        variants: list[GeneratedVariant] = []
        errors: list[ImageError] = []
        for result in attempts:
            variants.extend(result.variants)
            if result.error is not None:
                errors.append(result.error)
        return ItemResult.from_attempts(variants, errors)

    async def _process_image(  # noqa: PLR0913
        self,
        item: WorkItem,
        index: int,
        image: SourceImage,
        prompt: str,
        variant_count: object,
    ) -> _ImageAttempt:
        logger.info(
            "Processing image %s/%s: %s",
            index + 1,
            len(item.source_images),
            image.filename,
        )
        try:
            fetched = await self.fetcher.fetch(image.url)
            variants = await self.generator.generate(
                fetched,
                prompt,
                variant_count,
                owner_tag=item.email,
                source_index=index,
            )
        except Exception as exc:
            logger.exception(
                "Error processing image",
                extra={"item_id": item.id, "image": image.filename},
            )
            error = ImageError(
                source_image_index=index, image=image.filename, message=str(exc)
            )
            return _ImageAttempt(variants=[], error=error)
        logger.info("Generated %s variations for %s", len(variants), image.filename)
        return _ImageAttempt(variants=variants)
