"""Domain models for orders pulled from the record store."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class SourceImage:
    """Customer-supplied photo attached to an order."""

    url: str
    filename: str


@dataclass(frozen=True)
class WorkItem:
    """One order eligible for image regeneration."""

    id: str
    email: str | None
    user_name: str | None
    prompt: str
    source_images: tuple[SourceImage, ...] = field(default_factory=tuple)
    created_at: datetime | None = None
    package: str | None = None
