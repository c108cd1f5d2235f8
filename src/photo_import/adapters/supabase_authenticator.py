"""Request authentication backed by Supabase Auth."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from supabase import AuthError as SupabaseAuthError
from supabase import AuthRetryableError, Client

from photo_import.errors import AuthError, DataError, TransientError

logger = logging.getLogger(__name__)


class RequestAuthenticator(Protocol):
    """Interface for resolving the authenticated owner of a request."""

    def verify(
        self, headers: Mapping[str, str], cookies: Mapping[str, str]
    ) -> str:
        """Return the owner id, or raise AuthError."""


@dataclass
class SupabaseRequestAuthenticator(RequestAuthenticator):
    """Verifies Supabase access tokens sent as bearer header or cookie."""

    client: Client
    cookie_name: str = "sb-access-token"

    def verify(
        self, headers: Mapping[str, str], cookies: Mapping[str, str]
    ) -> str:
        """Verify the request token with Supabase Auth and return the user id."""
        token = _extract_token(headers, cookies, self.cookie_name)
        if not token:
            raise AuthError("Missing access token")
        try:
            response = self.client.auth.get_user(token)
        except AuthRetryableError as exc:
            raise TransientError(f"Auth service unavailable: {exc}") from exc
        except SupabaseAuthError as exc:
            raise AuthError(f"Invalid access token: {exc}") from exc
        if response is None or response.user is None:
            raise AuthError("Access token did not resolve to a user")
        owner_id = getattr(response.user, "id", None)
        if not owner_id:
            logger.error("Verified token has no subject")
            raise DataError("Verified token has no subject")
        return str(owner_id)


def _extract_token(
    headers: Mapping[str, str], cookies: Mapping[str, str], cookie_name: str
) -> str | None:
    authorization = headers.get("authorization")
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    return cookies.get(cookie_name) or None
