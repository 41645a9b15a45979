"""Record store interface for orders."""

from typing import Protocol

from photo_regen.domain.orders import WorkItem


class OrderRepository(Protocol):
    """Persistence interface for pending orders."""

    async def fetch_eligible(self) -> list[WorkItem]:
        """Return orders inside the eligibility window, in store order."""

    async def write_generated(
        self, item_id: str, image_urls: list[str], download_link: str
    ) -> None:
        """Store the generated image list and gallery link on an order."""

    async def write_reference_image(self, item_id: str, url: str) -> None:
        """Store a single reference image on an order."""
