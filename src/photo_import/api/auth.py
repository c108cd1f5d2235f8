"""Request authentication dependencies."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, Header, HTTPException, Request, status

from photo_import.errors import AuthError

if TYPE_CHECKING:
    from photo_import.containers import AppContainer


def require_owner(request: Request) -> str:
    """Resolve the authenticated owner id or reject with 403."""
    container: AppContainer = request.app.state.container
    try:
        return container.authenticator.verify(request.headers, request.cookies)
    except AuthError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)
        ) from exc


def _get_cron_secret(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.cron_secret


async def require_cron(
    authorization: str | None = Header(default=None),
    cron_secret: str = Depends(_get_cron_secret),
) -> None:
    """Ensure scheduler requests carry the cron secret as a bearer token."""
    if not authorization or authorization != f"Bearer {cron_secret}":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
