"""Supabase Storage blob store."""

from dataclasses import dataclass

import httpx
from supabase import Client, StorageException

from photo_import.errors import TransientError
from photo_import.services.transfer import BlobStore


@dataclass
class SupabaseBlobStore(BlobStore):
    """Writes blobs into a Supabase Storage bucket, overwriting by key."""

    client: Client
    bucket: str = "photos"

    def put(self, key: str, payload: bytes, content_type: str | None = None) -> None:
        """Upload bytes at a key with upsert semantics."""
        file_options = {"upsert": "true"}
        if content_type:
            file_options["content-type"] = content_type
        try:
            self.client.storage.from_(self.bucket).upload(
                path=key,
                file=payload,
                file_options=file_options,
            )
        except (StorageException, httpx.HTTPError) as exc:
            raise TransientError(f"Blob upload failed for {key}: {exc}") from exc
