"""Supabase Storage-backed blob store."""

import asyncio
from dataclasses import dataclass

from supabase import Client

from photo_regen.errors import StorageError
from photo_regen.services.storage import BlobStore


@dataclass
class SupabaseBlobStore(BlobStore):
    """Blob store writing to a public Supabase Storage bucket."""

    client: Client
    bucket: str
    public_base_url: str

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        """Upload bytes, overwriting any existing object at the path."""
        try:
            await asyncio.to_thread(self._upload, path, data, content_type)
        except Exception as exc:
            raise StorageError(f"Failed to store {path}: {exc}", path=path) from exc
        return f"{self.public_base_url.rstrip('/')}/{path}"

    def _upload(self, path: str, data: bytes, content_type: str) -> None:
        self.client.storage.from_(self.bucket).upload(
            path,
            data,
            file_options={"content-type": content_type, "upsert": "true"},
        )
