"""Domain models for generation results."""

from dataclasses import dataclass, field
from enum import StrEnum

from photo_regen.domain.orders import WorkItem


class ItemStatus(StrEnum):
    """Terminal status of one processed work item."""

    SUCCESS = "success"
    PARTIAL = "partial"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class GeneratedVariant:
    """One regenerated image stored in the blob store."""

    source_image_index: int
    url: str


@dataclass(frozen=True)
class ImageError:
    """Failure of a single source image.

    ``image`` is the display filename, which need not be unique within an
    order; ``source_image_index`` identifies the image.
    """

    source_image_index: int
    image: str
    message: str


@dataclass(frozen=True)
class ItemResult:
    """Outcome of processing one work item."""

    status: ItemStatus
    variants: tuple[GeneratedVariant, ...] = field(default_factory=tuple)
    image_errors: tuple[ImageError, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> "ItemResult":
        """Result for an item without source images."""
        return cls(status=ItemStatus.EMPTY)

    @classmethod
    def failed(cls) -> "ItemResult":
        """Result for an item that failed before producing anything."""
        return cls(status=ItemStatus.FAILED)

    @classmethod
    def from_attempts(
        cls, variants: list[GeneratedVariant], image_errors: list[ImageError]
    ) -> "ItemResult":
        """Classify the collected per-image attempts."""
        if not variants:
            status = ItemStatus.FAILED
        elif image_errors:
            status = ItemStatus.PARTIAL
        else:
            status = ItemStatus.SUCCESS
        return cls(
            status=status, variants=tuple(variants), image_errors=tuple(image_errors)
        )

    @property
    def urls(self) -> list[str]:
        return [variant.url for variant in self.variants]

    @property
    def per_image_errors(self) -> dict[int, str]:
        """Error messages keyed by source image index."""
        return {
            error.source_image_index: error.message for error in self.image_errors
        }


@dataclass(frozen=True)
class ItemOutcome:
    """Everything the orchestrator observed for one work item."""

    item: WorkItem
    result: ItemResult
    gallery_url: str | None = None
    record_error: str | None = None

    @property
    def processed(self) -> bool:
        return self.result.status is not ItemStatus.EMPTY
