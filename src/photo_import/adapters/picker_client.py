"""Google Photos Picker API client."""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol

import httpx

from photo_import.domain.jobs import MediaItem
from photo_import.domain.picker import MediaItemsPage, RemoteSession
from photo_import.errors import DataError, TransientError

PICKER_BASE_URL = "https://photospicker.googleapis.com/v1"


class PickerClient(Protocol):
    """Interface for the remote media picker."""

    async def create_session(self, access_token: str) -> RemoteSession:
        """Create a new picker session."""

    async def get_session(self, access_token: str, session_id: str) -> RemoteSession:
        """Return the current state of a picker session."""

    async def list_items(
        self, access_token: str, session_id: str, page_token: str | None = None
    ) -> MediaItemsPage:
        """Return one page of items picked in a session."""


@dataclass
class HttpxPickerClient(PickerClient):
    """Picker client implemented with httpx."""

    http_client: httpx.AsyncClient
    base_url: str = PICKER_BASE_URL
    page_size: int = 100

    @classmethod
    def create(
        cls, base_url: str = PICKER_BASE_URL, page_size: int = 100
    ) -> "HttpxPickerClient":
        """Create a picker client with a managed httpx session."""
        return cls(
            http_client=httpx.AsyncClient(), base_url=base_url, page_size=page_size
        )

    async def create_session(self, access_token: str) -> RemoteSession:
        """Create a session via POST /sessions."""
        payload = await self._request(
            "POST", "/sessions", access_token, json={}, action="create session"
        )
        return RemoteSession.from_api(payload)

    async def get_session(self, access_token: str, session_id: str) -> RemoteSession:
        """Fetch a session via GET /sessions/{id}."""
        payload = await self._request(
            "GET", f"/sessions/{session_id}", access_token, action="fetch session"
        )
        return RemoteSession.from_api(payload)

    async def list_items(
        self, access_token: str, session_id: str, page_token: str | None = None
    ) -> MediaItemsPage:
        """List picked items via GET /mediaItems."""
        params: dict[str, object] = {
            "sessionId": session_id,
            "pageSize": self.page_size,
        }
        if page_token:
            params["pageToken"] = page_token
        payload = await self._request(
            "GET", "/mediaItems", access_token, params=params, action="list items"
        )
        raw_items = payload.get("mediaItems") or []
        if not isinstance(raw_items, list):
            raise DataError("Picker returned a non-list mediaItems field")
        next_page_token = payload.get("nextPageToken") or None
        return MediaItemsPage(
            items=[MediaItem.from_api(item) for item in raw_items],
            next_page_token=str(next_page_token) if next_page_token else None,
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _request(  # noqa: PLR0913
        self,
        method: str,
        path: str,
        access_token: str,
        *,
        action: str,
        params: dict[str, object] | None = None,
        json: dict[str, object] | None = None,
    ) -> dict[str, object]:
        try:
            response = await self.http_client.request(
                method,
                f"{self.base_url}{path}",
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=15,
            )
        except httpx.HTTPError as exc:
            raise TransientError(f"Picker {action} failed: {exc}") from exc
        if not response.is_success:
            raise TransientError(
                f"Picker {action} failed: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise DataError(f"Picker {action} returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise DataError(f"Picker {action} returned unexpected payload")
        return payload


async def iter_items(
    client: PickerClient, access_token: str, session_id: str
) -> AsyncIterator[MediaItem]:
    """Yield every picked item, following page tokens in order."""
    page_token: str | None = None
    while True:
        page = await client.list_items(access_token, session_id, page_token)
        for item in page.items:
            yield item
        if not page.next_page_token:
            return
        page_token = page.next_page_token
