"""Blob storage interface and path helpers."""

import re
import time
from dataclasses import dataclass
from typing import Protocol

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")


class BlobStore(Protocol):
    """Interface for durable public blob storage."""

    async def put(self, path: str, data: bytes, content_type: str) -> str:
        """Store bytes at a path and return the public URL."""


@dataclass
class UniqueMillisClock:
    """Epoch milliseconds for path stamps, strictly increasing per instance.

    Concurrent image workers share one instance, so two calls in the same
    millisecond still yield distinct paths.
    """

    last: int = 0

    def __call__(self) -> int:
        self.last = max(int(time.time() * 1000), self.last + 1)
        return self.last


def sanitize_owner(owner_tag: str | None) -> str:
    """Return a storage-safe owner tag."""
    if not owner_tag:
        return "anonymous"
    return _UNSAFE_CHARS.sub("_", owner_tag)


def owner_folder(owner_tag: str | None) -> str:
    """Return the folder that holds an owner's generated files."""
    return f"{sanitize_owner(owner_tag)}_gen"
