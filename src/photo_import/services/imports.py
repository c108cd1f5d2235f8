"""Import lifecycle: starting a picker session and reading progress."""

import logging
from dataclasses import dataclass

from photo_import.adapters.google_oauth_client import IdentityProviderClient
from photo_import.adapters.picker_client import PickerClient
from photo_import.domain.jobs import JobRecord, StatusRecord
from photo_import.domain.picker import RemoteSession
from photo_import.services.driver import WAITING_MESSAGE
from photo_import.services.state_store import JobStateStore, StatusStore

logger = logging.getLogger(__name__)


@dataclass
class ImportService:
    """Creates import jobs and serves their status to the UI."""

    identity_provider: IdentityProviderClient
    picker_client: PickerClient
    jobs: JobStateStore
    statuses: StatusStore

    def authorization_url(self, redirect_url: str) -> str:
        """Return the identity provider consent URL."""
        return self.identity_provider.authorization_url(redirect_url)

    async def start_import(
        self, owner_id: str, code: str, redirect_url: str
    ) -> RemoteSession:
        """Exchange the code, open a picker session and record a new job.

        Any previous job for the owner is replaced.
        """
        tokens = await self.identity_provider.exchange(code, redirect_url)
        session = await self.picker_client.create_session(tokens.access_token)
        self.jobs.put(
            JobRecord(
                owner_id=owner_id,
                remote_session_id=session.id,
                access_token=tokens.access_token,
                token_expires_at=tokens.expires_at,
            )
        )
        self.statuses.publish(owner_id, WAITING_MESSAGE)
        logger.info(
            "Started import",
            extra={"owner_id": owner_id, "session_id": session.id},
        )
        return session

    def check_status(self, owner_id: str) -> StatusRecord | None:
        """Return the latest status, deleting it once it reports completion."""
        status = self.statuses.get(owner_id)
        if status is not None and status.finished:
            self.statuses.delete(owner_id)
        return status
