"""Copies one picked item into blob storage."""

import logging
from dataclasses import dataclass
from typing import Protocol

from photo_import.adapters.media_file_client import MediaFileClient
from photo_import.domain.jobs import MediaItem, MediaType

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    """Overwrite-by-key blob storage."""

    def put(self, key: str, payload: bytes, content_type: str | None = None) -> None:
        """Write bytes at a key, replacing any existing blob."""


@dataclass
class TransferWorker:
    """Downloads an item's bytes and writes them under its deterministic key.

    Errors from either side propagate unchanged, so the caller can keep the
    item queued and retry it on the next step.
    """

    file_client: MediaFileClient
    blob_store: BlobStore

    async def fetch(self, item: MediaItem, access_token: str) -> bytes:
        """Download the full-size bytes of an item."""
        return await self.file_client.download(download_url(item), access_token)

    def store(self, item: MediaItem, payload: bytes) -> None:
        """Write downloaded bytes at the item's blob key."""
        self.blob_store.put(item.blob_key, payload, content_type=item.mime_type)
        logger.info(
            "Stored media item",
            extra={"item_id": item.id, "key": item.blob_key, "size": len(payload)},
        )

    async def transfer(self, item: MediaItem, access_token: str) -> None:
        """Download an item and write it to blob storage."""
        payload = await self.fetch(item, access_token)
        self.store(item, payload)


def download_url(item: MediaItem) -> str:
    """Return the base URL with the parameters for a full download."""
    if item.type == MediaType.VIDEO:
        return f"{item.source_url}=dv"
    return f"{item.source_url}=w{item.width}-h{item.height}-d"
