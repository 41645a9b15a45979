"""Airtable-backed order repository."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import httpx

from photo_regen.domain.orders import SourceImage, WorkItem
from photo_regen.errors import UpstreamError
from photo_regen.services.orders import OrderRepository

SOURCE_IMAGE_FIELDS = ("Image_Upload", "Image_Upload2")
GENERATED_IMAGES_FIELD = "Image"
DOWNLOAD_LINK_FIELD = "Download_Link"
REFERENCE_IMAGE_FIELD = "Image_Upload2"


def eligibility_formula(cutoff: datetime) -> str:
    """Return the filter selecting recent orders with a package selected."""
    return (
        f"AND(IS_AFTER({{Timestamp}}, '{cutoff.isoformat(timespec='milliseconds')}'), "
        "{Order_Package} != '')"
    )


@dataclass
class AirtableOrderRepository(OrderRepository):
    """Order repository using the Airtable REST API."""

    api_key: str
    base_id: str
    table_name: str
    http_client: httpx.AsyncClient
    base_url: str = "https://api.airtable.com/v0"
    window_hours: int = 24

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        api_key: str,
        base_id: str,
        table_name: str,
        base_url: str = "https://api.airtable.com/v0",
        window_hours: int = 24,
    ) -> "AirtableOrderRepository":
        """Create a repository with a managed httpx session."""
        return cls(
            api_key=api_key,
            base_id=base_id,
            table_name=table_name,
            http_client=httpx.AsyncClient(),
            base_url=base_url,
            window_hours=window_hours,
        )

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/{self.base_id}/{self.table_name}"

    async def fetch_eligible(self) -> list[WorkItem]:
        """Fetch orders created inside the window that have a package."""
        cutoff = datetime.now(tz=UTC) - timedelta(hours=self.window_hours)
        params = {"filterByFormula": eligibility_formula(cutoff)}
        items: list[WorkItem] = []
        while True:
            payload = await self._request("GET", self.table_url, params=params)
            records = payload.get("records") or []
            items.extend(_to_work_item(record) for record in records)
            offset = payload.get("offset")
            if not offset:
                return items
            params = {**params, "offset": str(offset)}

    async def write_generated(
        self, item_id: str, image_urls: list[str], download_link: str
    ) -> None:
        """Store generated image attachments and the gallery link."""
        await self._update(
            item_id,
            {
                GENERATED_IMAGES_FIELD: [{"url": url} for url in image_urls],
                DOWNLOAD_LINK_FIELD: download_link,
            },
        )

    async def write_reference_image(self, item_id: str, url: str) -> None:
        """Store one generated image as the order's reference attachment."""
        await self._update(item_id, {REFERENCE_IMAGE_FIELD: [{"url": url}]})

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _update(self, item_id: str, fields: dict[str, object]) -> None:
        await self._request(
            "PATCH", f"{self.table_url}/{item_id}", json={"fields": fields}
        )

    async def _request(
        self,
        method: str,
        url: str,
        params: dict[str, str] | None = None,
        json: dict[str, object] | None = None,
    ) -> dict[str, object]:
        try:
            response = await self.http_client.request(
                method,
                url,
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=30,
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Airtable request failed: {exc}") from exc
        action = "fetch" if method == "GET" else "update"
        if not response.is_success:
            raise UpstreamError(
                f"Airtable {action} failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"Airtable {action} returned a non-JSON body",
                status_code=response.status_code,
                body=response.text,
            ) from exc
        if not isinstance(payload, dict):
            raise UpstreamError(
                f"Airtable {action} returned an unexpected body",
                status_code=response.status_code,
                body=response.text,
            )
        return payload


def _to_work_item(record: dict[str, object]) -> WorkItem:
    fields = record.get("fields") or {}
    if not isinstance(fields, dict):
        fields = {}
    return WorkItem(
        id=str(record["id"]),
        email=fields.get("Email"),
        user_name=fields.get("User"),
        prompt=str(fields.get("Prompt") or ""),
        source_images=_collect_source_images(fields),
        created_at=_parse_timestamp(fields.get("Timestamp")),
        package=fields.get("Order_Package"),
    )


def _collect_source_images(fields: dict[str, object]) -> tuple[SourceImage, ...]:
    """Merge both upload fields in order, dropping repeated URLs."""
    seen: set[str] = set()
    images: list[SourceImage] = []
    for field_name in SOURCE_IMAGE_FIELDS:
        attachments = fields.get(field_name) or []
        if not isinstance(attachments, list):
            continue
        for attachment in attachments:
            if not isinstance(attachment, dict):
                continue
            url = str(attachment.get("url") or "")
            if url and url in seen:
                continue
            seen.add(url)
            filename = attachment.get("filename") or f"image_{len(images) + 1}.jpg"
            images.append(SourceImage(url=url, filename=str(filename)))
    return tuple(images)


def _parse_timestamp(raw: object) -> datetime | None:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
