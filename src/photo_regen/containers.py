"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from photo_regen.adapters.airtable_order_repository import AirtableOrderRepository
from photo_regen.adapters.gemini_image_client import GeminiImageClient
from photo_regen.adapters.image_fetcher import HttpxImageFetcher
from photo_regen.adapters.supabase_blob_store import SupabaseBlobStore
from photo_regen.config import Settings
from photo_regen.services.gallery import GalleryPublisher
from photo_regen.services.generator import ImageGeneratorService
from photo_regen.services.orchestrator import BatchConfig, BatchOrchestrator
from photo_regen.services.orders import OrderRepository
from photo_regen.services.processor import WorkItemProcessor


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    order_repository: OrderRepository
    processor: WorkItemProcessor
    orchestrator: BatchOrchestrator
    close_resources: Callable[[], Awaitable[None]]

    def batch_config(self) -> BatchConfig:
        """Return run options from the current settings."""
        return BatchConfig.from_settings(self.settings)


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    blob_store = SupabaseBlobStore(
        client=supabase_client,
        bucket=resolved_settings.storage_bucket,
        public_base_url=resolved_settings.public_base_url,
    )
    order_repository = AirtableOrderRepository.create(
        api_key=resolved_settings.airtable_api_key,
        base_id=resolved_settings.airtable_base_id,
        table_name=resolved_settings.airtable_table_name,
        base_url=resolved_settings.airtable_base_url,
        window_hours=resolved_settings.eligibility_window_hours,
    )
    image_fetcher = HttpxImageFetcher.create()
    gemini_client = GeminiImageClient.create(
        api_key=resolved_settings.gemini_api_key,
        model=resolved_settings.gemini_model,
    )
    generator = ImageGeneratorService(client=gemini_client, blob_store=blob_store)
    processor = WorkItemProcessor(
        fetcher=image_fetcher,
        generator=generator,
        max_concurrent_images=resolved_settings.max_concurrent_images,
    )
    orchestrator = BatchOrchestrator(
        repository=order_repository,
        processor=processor,
        gallery=GalleryPublisher(blob_store),
    )

    async def close_resources() -> None:
        await order_repository.close()
        await image_fetcher.close()

    return AppContainer(
        settings=resolved_settings,
        order_repository=order_repository,
        processor=processor,
        orchestrator=orchestrator,
        close_resources=close_resources,
    )
