"""Source image download client."""

from dataclasses import dataclass

import httpx

from photo_regen.errors import FetchError
from photo_regen.services.images import FetchedImage, ImageFetcher, detect_mime_type


@dataclass
class HttpxImageFetcher(ImageFetcher):
    """Image fetcher using httpx."""

    http_client: httpx.AsyncClient

    @classmethod
    def create(cls) -> "HttpxImageFetcher":
        """Create a fetcher with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(follow_redirects=True))

    async def fetch(self, url: str) -> FetchedImage:
        """Download image bytes, raising FetchError on any failure."""
        if not url:
            raise FetchError("Image URL is missing", url=url)
        try:
            response = await self.http_client.get(url, timeout=30)
        except httpx.HTTPError as exc:
            raise FetchError(
                f"Failed to fetch source image at {url}: {exc}", url=url
            ) from exc
        if not response.is_success:
            raise FetchError(
                f"Failed to fetch image: {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        content = response.content
        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        mime_type = (
            content_type
            if content_type.startswith("image/")
            else detect_mime_type(content)
        )
        return FetchedImage(content=content, mime_type=mime_type)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
