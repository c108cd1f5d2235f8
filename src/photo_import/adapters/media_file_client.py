"""Authenticated download of picked media bytes."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from photo_import.errors import TransientError


class MediaFileClient(Protocol):
    """Interface for downloading media bytes."""

    async def download(self, url: str, access_token: str) -> bytes:
        """Download a media file and return its bytes."""


@dataclass
class HttpxMediaFileClient(MediaFileClient):
    """Media file client using httpx."""

    http_client: httpx.AsyncClient

    @classmethod
    def create(cls) -> "HttpxMediaFileClient":
        """Create a media file client with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(follow_redirects=True))

    async def download(self, url: str, access_token: str) -> bytes:
        """Download media bytes with a bearer credential."""
        try:
            response = await self.http_client.get(
                url, headers={"Authorization": f"Bearer {access_token}"}, timeout=60
            )
        except httpx.HTTPError as exc:
            raise TransientError(f"Media download failed: {exc}") from exc
        if not response.is_success:
            raise TransientError(
                f"Media download failed: {response.status_code}",
                status_code=response.status_code,
            )
        return response.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
