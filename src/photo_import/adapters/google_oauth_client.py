"""Google OAuth 2.0 authorization-code client."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

import httpx

from photo_import.errors import DataError, TransientError

PICKER_SCOPE = "https://www.googleapis.com/auth/photospicker.mediaitems.readonly"


@dataclass(frozen=True)
class OAuthTokens:
    """Tokens returned by the identity provider."""

    access_token: str
    expires_at: datetime | None = None


class IdentityProviderClient(Protocol):
    """Interface for the OAuth identity provider."""

    def authorization_url(self, redirect_url: str) -> str:
        """Return the consent URL the user is redirected to."""

    async def exchange(self, code: str, redirect_url: str) -> OAuthTokens:
        """Exchange an authorization code for tokens."""


@dataclass
class HttpxGoogleOAuthClient(IdentityProviderClient):
    """Google OAuth client implemented with httpx."""

    client_id: str
    client_secret: str
    http_client: httpx.AsyncClient
    auth_url: str = "https://accounts.google.com/o/oauth2/v2/auth"
    token_url: str = "https://oauth2.googleapis.com/token"

    @classmethod
    def create(
        cls, client_id: str, client_secret: str, auth_url: str, token_url: str
    ) -> "HttpxGoogleOAuthClient":
        """Create an OAuth client with a managed httpx session."""
        return cls(
            client_id=client_id,
            client_secret=client_secret,
            http_client=httpx.AsyncClient(),
            auth_url=auth_url,
            token_url=token_url,
        )

    def authorization_url(self, redirect_url: str) -> str:
        """Build the consent URL for picker read access."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_url,
            "response_type": "code",
            "scope": PICKER_SCOPE,
            "access_type": "offline",
        }
        return str(httpx.URL(self.auth_url, params=params))

    async def exchange(self, code: str, redirect_url: str) -> OAuthTokens:
        """Exchange the authorization code at the token endpoint."""
        try:
            response = await self.http_client.post(
                self.token_url,
                data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": redirect_url,
                    "grant_type": "authorization_code",
                },
                timeout=10,
            )
        except httpx.HTTPError as exc:
            raise TransientError(f"Token exchange failed: {exc}") from exc
        if not response.is_success:
            raise TransientError(
                f"Token exchange failed: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise DataError("Token response is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise DataError("Token response has unexpected payload")
        access_token = payload.get("access_token")
        if not access_token:
            raise DataError("Token response has no access_token")
        expires_at = None
        expires_in = payload.get("expires_in")
        if isinstance(expires_in, int | float):
            expires_at = datetime.now(tz=UTC) + timedelta(seconds=expires_in)
        return OAuthTokens(access_token=access_token, expires_at=expires_at)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
