"""Batch orchestration over eligible orders."""

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime

from photo_regen.config import Settings
from photo_regen.domain.orders import WorkItem
from photo_regen.domain.reports import ItemSummary, ManualRunResult, RunError, RunReport
from photo_regen.domain.results import ItemOutcome, ItemResult
from photo_regen.services.gallery import GalleryPublisher
from photo_regen.services.orders import OrderRepository
from photo_regen.services.processor import WorkItemProcessor

FATAL_ERROR_TYPE = "fatal"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchConfig:
    """Per-run processing options."""

    enabled: bool
    default_prompt: str
    use_default_prompt: bool
    variant_count: object

    @classmethod
    def from_settings(cls, settings: Settings) -> "BatchConfig":
        return cls(
            enabled=settings.auto_process_enabled,
            default_prompt=settings.default_food_prompt,
            use_default_prompt=settings.use_default_prompt,
            variant_count=settings.default_variation_count,
        )


@dataclass
class BatchOrchestrator:
    """Run the processor over every eligible order and report the outcome."""

    repository: OrderRepository
    processor: WorkItemProcessor
    gallery: GalleryPublisher

    async def run_batch(self, config: BatchConfig) -> RunReport:
        """Process all eligible orders; never raises.

        Only a failure to list the eligible orders aborts the run. Every other
        failure is recorded in the report against its image or order.
        """
        started = time.monotonic()
        timestamp = datetime.now(tz=UTC)
        if not config.enabled:
            logger.info("Automation is disabled")
            return RunReport(timestamp=timestamp, enabled=False)

        try:
            items = await self.repository.fetch_eligible()
        except Exception as exc:
            logger.exception("Fatal error while fetching eligible records")
            return fatal_report(timestamp, str(exc), _elapsed_ms(started))

        logger.info("Found %s records to process", len(items))
        outcomes = []
        for item in items:
            outcomes.append(await self._run_item(item, config))

        report = fold_report(outcomes, timestamp, _elapsed_ms(started))
        logger.info(
            "Processing complete in %sms: %s success, %s errors",
            report.duration_ms,
            report.success_count,
            report.error_count,
        )
        return report

    async def process_next(self, config: BatchConfig) -> ManualRunResult:
        """Process the first eligible order and keep one reference image."""
        try:
            items = await self.repository.fetch_eligible()
            if not items:
                return ManualRunResult(
                    status="no_work", message="No pending records found."
                )
            item = items[0]
            logger.info("Processing record %s", item.id)
            if not item.source_images:
                return ManualRunResult(status="error", message="Record has no images.")
            result = await self.processor.process(
                item,
                config.default_prompt,
                config.use_default_prompt,
                config.variant_count,
            )
            if not result.variants:
                messages = [error.message for error in result.image_errors]
                return ManualRunResult(
                    status="error",
                    error="; ".join(messages) or "No images were generated.",
                )
            await self.repository.write_reference_image(item.id, result.urls[0])
            return ManualRunResult(
                status="success",
                email=item.email,
                user=item.user_name or "Client",
                links=tuple(result.urls),
            )
        except Exception as exc:
            logger.exception("Manual run failed")
            return ManualRunResult(status="error", error=str(exc))

    async def _run_item(self, item: WorkItem, config: BatchConfig) -> ItemOutcome:
        try:
            result = await self.processor.process(
                item,
                config.default_prompt,
                config.use_default_prompt,
                config.variant_count,
            )
        except Exception as exc:
            logger.exception("Error processing record", extra={"item_id": item.id})
            return ItemOutcome(item=item, result=ItemResult.failed(), record_error=str(exc))

        if not result.variants:
            return ItemOutcome(item=item, result=result)

        gallery_url = None
        try:
            gallery_url = await self.gallery.publish(item.email, result.urls)
            logger.info("Generated download page: %s", gallery_url)
            await self.repository.write_generated(item.id, result.urls, gallery_url)
        except Exception as exc:
            logger.exception("Failed to save results", extra={"item_id": item.id})
            return ItemOutcome(
                item=item, result=result, gallery_url=gallery_url, record_error=str(exc)
            )
        logger.info("Saved %s images for record %s", len(result.variants), item.id)
        return ItemOutcome(item=item, result=result, gallery_url=gallery_url)


def fold_report(
    outcomes: list[ItemOutcome], timestamp: datetime, duration_ms: int = 0
) -> RunReport:
    """Reduce per-order outcomes into a run report.

    Orders without source images count as found but not processed. The
    success and error counters track record-level errors only, independent of
    the per-image status.
    """
    processed = 0
    success_count = 0
    error_count = 0
    details: list[ItemSummary] = []
    errors: list[RunError] = []
    for outcome in outcomes:
        if not outcome.processed:
            continue
        item = outcome.item
        processed += 1
        for image_error in outcome.result.image_errors:
            errors.append(
                RunError(
                    item_id=item.id,
                    email=item.email,
                    image=image_error.image,
                    message=image_error.message,
                )
            )
        if outcome.record_error is not None:
            error_count += 1
            errors.append(
                RunError(item_id=item.id, email=item.email, message=outcome.record_error)
            )
        else:
            success_count += 1
        details.append(
            ItemSummary(
                item_id=item.id,
                email=item.email,
                images_processed=len(item.source_images),
                status=str(outcome.result.status),
            )
        )
    return RunReport(
        timestamp=timestamp,
        records_found=len(outcomes),
        records_processed=processed,
        success_count=success_count,
        error_count=error_count,
        details=tuple(details),
        errors=tuple(errors),
        duration_ms=duration_ms,
    )


def fatal_report(timestamp: datetime, message: str, duration_ms: int = 0) -> RunReport:
    """Report for a run aborted before any order was attempted."""
    return RunReport(
        timestamp=timestamp,
        error_count=1,
        errors=(RunError(message=message, type=FATAL_ERROR_TYPE),),
        duration_ms=duration_ms,
    )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
