"""Tests for the import lifecycle service."""

import asyncio
from datetime import UTC, datetime

from photo_import.domain.jobs import JobStage
from photo_import.services.imports import ImportService
from photo_import.services.state_store import JobStateStore, StatusStore
from tests.conftest import OWNER_ID, FakeIdentityProvider, make_item, make_job


def test_start_import_records_job_and_waiting_status(
    import_service: ImportService,
    identity_provider: FakeIdentityProvider,
    jobs: JobStateStore,
    statuses: StatusStore,
) -> None:
    identity_provider.expires_at = datetime(2030, 1, 1, tzinfo=UTC)

    session = asyncio.run(
        import_service.start_import(
            owner_id=OWNER_ID,
            code="auth-code",
            redirect_url="https://app.test/oauth_callback",
        )
    )

    assert session.picker_uri.startswith("https://photos.google.com/picker")
    assert identity_provider.exchanged == [
        ("auth-code", "https://app.test/oauth_callback")
    ]
    job = jobs.get(OWNER_ID)
    assert job is not None
    assert job.stage == JobStage.AWAITING_SELECTION
    assert job.remote_session_id == session.id
    assert job.access_token == "google-token"
    assert job.token_expires_at == datetime(2030, 1, 1, tzinfo=UTC)
    status = statuses.get(OWNER_ID)
    assert status is not None
    assert status.message == "waiting"


def test_start_import_replaces_previous_job(
    import_service: ImportService, jobs: JobStateStore
) -> None:
    jobs.put(make_job(stage=JobStage.TRANSFERRING, pending_items=[make_item(1)]))

    asyncio.run(
        import_service.start_import(
            owner_id=OWNER_ID, code="code", redirect_url="https://app.test/cb"
        )
    )

    job = jobs.get(OWNER_ID)
    assert job is not None
    assert job.pending_items == []
    assert job.stage == JobStage.AWAITING_SELECTION


def test_check_status_deletes_finished_status_after_read(
    import_service: ImportService, statuses: StatusStore, jobs: JobStateStore
) -> None:
    statuses.publish(OWNER_ID, "finished", finished=True)

    first = import_service.check_status(OWNER_ID)
    second = import_service.check_status(OWNER_ID)

    assert first is not None
    assert first.finished is True
    assert second is None


def test_check_status_keeps_unfinished_status_and_job(
    import_service: ImportService, statuses: StatusStore, jobs: JobStateStore
) -> None:
    jobs.put(make_job())
    statuses.publish(OWNER_ID, "fetching IMG_1.jpg")

    status = import_service.check_status(OWNER_ID)

    assert status is not None
    assert status.message == "fetching IMG_1.jpg"
    assert statuses.get(OWNER_ID) is not None
    assert jobs.get(OWNER_ID) is not None


def test_authorization_url_delegates_to_provider(
    import_service: ImportService,
) -> None:
    url = import_service.authorization_url("https://app.test/oauth_callback")

    assert url.startswith("https://accounts.test/auth")
