"""Shared test fixtures."""

import io
from dataclasses import dataclass, field

import pytest
from PIL import Image

from photo_regen.config import Settings
from photo_regen.containers import AppContainer
from photo_regen.domain.orders import SourceImage, WorkItem
from photo_regen.errors import FetchError, GenerationError, StorageError, UpstreamError
from photo_regen.services.gallery import GalleryPublisher
from photo_regen.services.generator import ImageGeneratorService, ImageModelClient
from photo_regen.services.images import FetchedImage, ImageFetcher
from photo_regen.services.orchestrator import BatchOrchestrator
from photo_regen.services.orders import OrderRepository
from photo_regen.services.processor import WorkItemProcessor
from photo_regen.services.storage import BlobStore

PUBLIC_BASE = "https://cdn.example.com"


def make_item(
    item_id: str = "rec1",
    email: str | None = "chef@example.com",
    image_urls: list[str] | None = None,
    prompt: str = "",
    user_name: str | None = "Chef",
) -> WorkItem:
    urls = ["https://files.example.com/a.jpg"] if image_urls is None else image_urls
    return WorkItem(
        id=item_id,
        email=email,
        user_name=user_name,
        prompt=prompt,
        source_images=tuple(
            SourceImage(url=url, filename=f"image_{index}.jpg")
            for index, url in enumerate(urls, start=1)
        ),
    )



def encode_image(width: int, height: int, fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 120, 40)).save(buffer, format=fmt)
    return buffer.getvalue()


@dataclass
class InMemoryOrderRepository(OrderRepository):
    """In-memory order repository for tests."""

    items: list[WorkItem] = field(default_factory=list)
    fetch_error: Exception | None = None
    write_error: Exception | None = None
    fetch_calls: int = 0
    generated: dict[str, tuple[list[str], str]] = field(default_factory=dict)
    references: dict[str, str] = field(default_factory=dict)

    async def fetch_eligible(self) -> list[WorkItem]:
        self.fetch_calls += 1
        if self.fetch_error is not None:
            raise self.fetch_error
        return list(self.items)

    async def write_generated(
        self, item_id: str, image_urls: list[str], download_link: str
    ) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.generated[item_id] = (image_urls, download_link)

    async def write_reference_image(self, item_id: str, url: str) -> None:
        if self.write_error is not None:
            raise self.write_error
        self.references[item_id] = url


@dataclass
class FakeImageFetcher(ImageFetcher):
    """Fake fetcher returning static bytes, failing for listed URLs."""

    content: bytes = b"\xff\xd8\xff-source"
    failing_urls: set[str] = field(default_factory=set)
    requested: list[str] = field(default_factory=list)

    async def fetch(self, url: str) -> FetchedImage:
        self.requested.append(url)
        if url in self.failing_urls:
            raise FetchError("Failed to fetch image: 404", url=url, status_code=404)
        return FetchedImage(content=self.content, mime_type="image/jpeg")


@dataclass
class FakeImageModelClient(ImageModelClient):
    """Fake image model; fails on the call numbers listed in ``fail_on``.

    ``raise_on`` maps a call number to the exact exception to raise.
    """

    fail_on: set[int] = field(default_factory=set)
    raise_on: dict[int, Exception] = field(default_factory=dict)
    fail_prompts: set[str] = field(default_factory=set)
    calls: list[dict[str, object]] = field(default_factory=list)

    async def generate_image(
        self, *, prompt: str, image: bytes, mime_type: str, aspect_ratio: str
    ) -> bytes:
        self.calls.append(
            {
                "prompt": prompt,
                "image": image,
                "mime_type": mime_type,
                "aspect_ratio": aspect_ratio,
            }
        )
        if len(self.calls) in self.raise_on:
            raise self.raise_on[len(self.calls)]
        if len(self.calls) in self.fail_on or prompt in self.fail_prompts:
            raise GenerationError("Gemini API Error: 500 - boom", status_code=500)
        return f"generated-{len(self.calls)}".encode()


@dataclass
class InMemoryBlobStore(BlobStore):
    """In-memory blob store for tests."""

    objects: dict[str, tuple[bytes, str]] = field(default_factory=dict)
    fail_prefixes: tuple[str, ...] = ()

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        if self.fail_prefixes and path.split("/")[-1].startswith(self.fail_prefixes):
            raise StorageError(f"Failed to store {path}", path=path)
        self.objects[path] = (data, content_type)
        return f"{PUBLIC_BASE}/{path}"


class _Counter:
    def __init__(self, start: int = 1700000000000) -> None:
        self.value = start

    def __call__(self) -> int:
        self.value += 1
        return self.value


@dataclass
class Pipeline:
    """Wired pipeline with access to every fake."""

    repository: InMemoryOrderRepository
    fetcher: FakeImageFetcher
    model: FakeImageModelClient
    blob_store: InMemoryBlobStore
    generator: ImageGeneratorService
    processor: WorkItemProcessor
    orchestrator: BatchOrchestrator


def build_pipeline(max_concurrent_images: int = 1) -> Pipeline:
    repository = InMemoryOrderRepository()
    fetcher = FakeImageFetcher()
    model = FakeImageModelClient()
    blob_store = InMemoryBlobStore()
    generator = ImageGeneratorService(client=model, blob_store=blob_store, clock=_Counter())
    processor = WorkItemProcessor(
        fetcher=fetcher,
        generator=generator,
        max_concurrent_images=max_concurrent_images,
    )
    orchestrator = BatchOrchestrator(
        repository=repository,
        processor=processor,
        gallery=GalleryPublisher(blob_store, clock=_Counter(1800000000000)),
    )
    return Pipeline(
        repository=repository,
        fetcher=fetcher,
        model=model,
        blob_store=blob_store,
        generator=generator,
        processor=processor,
        orchestrator=orchestrator,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        airtable_api_key="airtable-key",
        airtable_base_id="appBase",
        airtable_table_name="Orders",
        gemini_api_key="gemini-key",
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        public_base_url=PUBLIC_BASE,
        default_food_prompt="Food photo",
    )


@pytest.fixture
def pipeline() -> Pipeline:
    return build_pipeline()


@pytest.fixture
def container(settings: Settings, pipeline: Pipeline) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        order_repository=pipeline.repository,
        processor=pipeline.processor,
        orchestrator=pipeline.orchestrator,
        close_resources=close_resources,
    )


def upstream_failure() -> UpstreamError:
    return UpstreamError("Airtable fetch failed: 503", status_code=503)
