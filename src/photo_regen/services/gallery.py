"""Download gallery pages for generated images."""

from collections.abc import Callable
from dataclasses import dataclass, field
from html import escape

from photo_regen.services.storage import BlobStore, UniqueMillisClock, owner_folder

GALLERY_CONTENT_TYPE = "text/html"

_GALLERY_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Your Generated Images</title>
    <style>
        body {{ font-family: sans-serif; max-width: 800px; margin: 0 auto; padding: 20px; }}
        .gallery {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 20px; }}
        .image-card {{ border: 1px solid #ddd; padding: 10px; border-radius: 8px; text-align: center; }}
        img {{ max-width: 100%; height: auto; border-radius: 4px; }}
        .download-btn {{ display: inline-block; margin-top: 10px; padding: 8px 16px; background: #007bff; color: white; text-decoration: none; border-radius: 4px; }}
        .download-btn:hover {{ background: #0056b3; }}
    </style>
</head>
<body>
    <h1>Your Generated Images</h1>
    <p>Here are your optimized images. Click "Download" to save them.</p>
    <div class="gallery">
{cards}
    </div>
</body>
</html>
"""  # noqa: E501

_CARD_TEMPLATE = """        <div class="image-card">
            <img src="{url}" alt="Generated Image {number}" loading="lazy">
            <br>
            <a href="{url}" class="download-btn" download>Download Image {number}</a>
        </div>"""


def render_gallery(urls: list[str]) -> str:
    """Render a static page linking every generated image."""
    cards = "\n".join(
        _CARD_TEMPLATE.format(url=escape(url, quote=True), number=number)
        for number, url in enumerate(urls, start=1)
    )
    return _GALLERY_TEMPLATE.format(cards=cards)


def gallery_path(owner_tag: str | None, timestamp: int) -> str:
    return f"{owner_folder(owner_tag)}/download_{timestamp}.html"


@dataclass
class GalleryPublisher:
    """Store gallery pages in the blob store."""

    blob_store: BlobStore
    clock: Callable[[], int] = field(default_factory=UniqueMillisClock)

    async def publish(self, owner_tag: str | None, urls: list[str]) -> str:
        """Upload the gallery for an owner and return its public URL."""
        path = gallery_path(owner_tag, self.clock())
        html = render_gallery(urls)
        return await self.blob_store.put(
            path, html.encode("utf-8"), GALLERY_CONTENT_TYPE
        )
