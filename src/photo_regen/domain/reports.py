"""Domain models for run reports."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class RunError:
    """One failure recorded during a run, at any granularity."""

    message: str
    item_id: str | None = None
    email: str | None = None
    image: str | None = None
    type: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {}
        if self.type is not None:
            payload["type"] = self.type
        if self.item_id is not None:
            payload["recordId"] = self.item_id
            payload["email"] = self.email
        if self.image is not None:
            payload["image"] = self.image
        payload["error"] = self.message
        return payload


@dataclass(frozen=True)
class ItemSummary:
    """Per-item line of a run report."""

    item_id: str
    email: str | None
    images_processed: int
    status: str

    def to_dict(self) -> dict[str, object]:
        return {
            "recordId": self.item_id,
            "email": self.email,
            "imagesProcessed": self.images_processed,
            "status": self.status,
        }


@dataclass(frozen=True)
class RunReport:
    """Aggregate outcome of one batch run."""

    timestamp: datetime
    records_found: int = 0
    records_processed: int = 0
    success_count: int = 0
    error_count: int = 0
    details: tuple[ItemSummary, ...] = field(default_factory=tuple)
    errors: tuple[RunError, ...] = field(default_factory=tuple)
    duration_ms: int = 0
    enabled: bool = True

    @property
    def fatal(self) -> bool:
        return any(error.type == "fatal" for error in self.errors)

    def to_dict(self) -> dict[str, object]:
        """Serialize using the record-store-facing field names."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "enabled": self.enabled,
            "recordsFound": self.records_found,
            "recordsProcessed": self.records_processed,
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "errors": [error.to_dict() for error in self.errors],
            "details": [detail.to_dict() for detail in self.details],
            "durationMs": self.duration_ms,
        }


@dataclass(frozen=True)
class ManualRunResult:
    """Outcome of the single-item manual trigger."""

    status: str
    email: str | None = None
    user: str | None = None
    links: tuple[str, ...] = field(default_factory=tuple)
    message: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"status": self.status}
        if self.status == "success":
            payload["email"] = self.email
            payload["user"] = self.user
            payload["links"] = list(self.links)
        if self.message is not None:
            payload["message"] = self.message
        if self.error is not None:
            payload["error"] = self.error
        return payload
