"""Shared test fixtures."""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from photo_import.adapters.google_oauth_client import (
    IdentityProviderClient,
    OAuthTokens,
)
from photo_import.adapters.media_file_client import MediaFileClient
from photo_import.adapters.picker_client import PickerClient
from photo_import.adapters.supabase_authenticator import RequestAuthenticator
from photo_import.config import Settings
from photo_import.containers import AppContainer
from photo_import.domain.jobs import JobRecord, MediaItem, MediaType
from photo_import.domain.picker import MediaItemsPage, RemoteSession
from photo_import.errors import AuthError, TransientError
from photo_import.services.driver import JobDriver, RetryPolicy
from photo_import.services.imports import ImportService
from photo_import.services.state_store import (
    JobStateStore,
    KeyValueStore,
    StatusStore,
)
from photo_import.services.steps import StepRunner
from photo_import.services.transfer import BlobStore, TransferWorker

SERVICE_KEY = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    "eyJyb2xlIjoic2VydmljZV9yb2xlIn0."
    "c2lnbmF0dXJl"
)
OWNER_ID = "owner-1"


def make_item(index: int, media_type: MediaType = MediaType.PHOTO) -> MediaItem:
    return MediaItem(
        id=f"item-{index}",
        created_at=f"2024-05-0{index}T10:00:00Z",
        type=media_type,
        source_url=f"https://lh3.test/base-{index}",
        mime_type="image/jpeg",
        filename=f"IMG_{index}.jpg",
        width=4000,
        height=3000,
    )


def make_job(**overrides: object) -> JobRecord:
    values: dict[str, object] = {
        "owner_id": OWNER_ID,
        "remote_session_id": "session-1",
        "access_token": "google-token",
    }
    values.update(overrides)
    return JobRecord.model_validate(values)


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """In-memory keyed store for tests."""

    values: dict[str, dict[str, object]] = field(default_factory=dict)
    history: list[tuple[str, dict[str, object]]] = field(default_factory=list)

    def put(self, key: str, value: dict[str, object]) -> None:
        self.history.append((key, value))
        self.values[key] = value

    def writes_for(self, prefix: str) -> list[dict[str, object]]:
        return [value for key, value in self.history if key.startswith(prefix)]

    def get(self, key: str) -> dict[str, object] | None:
        return self.values.get(key)

    def delete(self, key: str) -> None:
        self.values.pop(key, None)

    def list_keys(self, prefix: str) -> list[str]:
        return [key for key in self.values if key.startswith(prefix)]


@dataclass
class FakePickerClient(PickerClient):
    """Fake picker serving a fixed selection split into pages."""

    media_selected: bool = False
    pages: list[list[MediaItem]] = field(default_factory=list)
    session_id: str = "session-1"
    picker_uri: str = "https://photos.google.com/picker/session-1"
    get_session_calls: int = 0
    list_calls: list[str | None] = field(default_factory=list)
    fail_get_session: bool = False

    async def create_session(self, access_token: str) -> RemoteSession:
        return RemoteSession(
            id=self.session_id,
            picker_uri=self.picker_uri,
            poll_interval_seconds=5.0,
            media_selected=False,
        )

    async def get_session(self, access_token: str, session_id: str) -> RemoteSession:
        self.get_session_calls += 1
        if self.fail_get_session:
            raise TransientError("Picker fetch session failed: 503", status_code=503)
        return RemoteSession(
            id=session_id,
            picker_uri=self.picker_uri,
            poll_interval_seconds=5.0,
            media_selected=self.media_selected,
        )

    async def list_items(
        self, access_token: str, session_id: str, page_token: str | None = None
    ) -> MediaItemsPage:
        self.list_calls.append(page_token)
        index = int(page_token.removeprefix("p")) if page_token else 0
        items = self.pages[index] if self.pages else []
        next_token = f"p{index + 1}" if index + 1 < len(self.pages) else None
        return MediaItemsPage(items=list(items), next_page_token=next_token)


@dataclass
class FakeMediaFileClient(MediaFileClient):
    """Fake downloader returning bytes derived from the URL."""

    downloads: list[str] = field(default_factory=list)
    fail_urls: set[str] = field(default_factory=set)

    async def download(self, url: str, access_token: str) -> bytes:
        self.downloads.append(url)
        await asyncio.sleep(0)
        if url in self.fail_urls:
            raise TransientError("Media download failed: 500", status_code=500)
        return f"bytes:{url}".encode()


@dataclass
class InMemoryBlobStore(BlobStore):
    """In-memory blob store with overwrite semantics."""

    blobs: dict[str, bytes] = field(default_factory=dict)
    writes: list[str] = field(default_factory=list)
    fail_keys: set[str] = field(default_factory=set)

    def put(self, key: str, payload: bytes, content_type: str | None = None) -> None:
        if key in self.fail_keys:
            raise TransientError(f"Blob upload failed for {key}")
        self.writes.append(key)
        self.blobs[key] = payload


@dataclass
class FakeIdentityProvider(IdentityProviderClient):
    """Fake identity provider issuing a fixed token."""

    access_token: str = "google-token"
    expires_at: datetime | None = None
    exchanged: list[tuple[str, str]] = field(default_factory=list)
    fail: bool = False

    def authorization_url(self, redirect_url: str) -> str:
        return f"https://accounts.test/auth?redirect_uri={redirect_url}"

    async def exchange(self, code: str, redirect_url: str) -> OAuthTokens:
        self.exchanged.append((code, redirect_url))
        if self.fail:
            raise TransientError("Token exchange failed: 503", status_code=503)
        return OAuthTokens(access_token=self.access_token, expires_at=self.expires_at)


@dataclass
class FakeAuthenticator(RequestAuthenticator):
    """Maps bearer tokens to owner ids."""

    tokens: dict[str, str] = field(default_factory=lambda: {"user-token": "owner-1"})
    unavailable: bool = False

    def verify(self, headers: Mapping[str, str], cookies: Mapping[str, str]) -> str:
        if self.unavailable:
            raise TransientError("Auth service unavailable")
        authorization = headers.get("authorization") or ""
        owner_id = self.tokens.get(authorization.removeprefix("Bearer "))
        if owner_id is None:
            raise AuthError("Missing access token")
        return owner_id


@dataclass
class FixedClock:
    """Controllable clock for backoff tests."""

    now: datetime = field(default_factory=lambda: datetime(2024, 6, 1, tzinfo=UTC))

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key=SERVICE_KEY,
        google_client_id="client-id",
        google_client_secret="client-secret",
        cron_secret="cron-secret",
    )


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def jobs(kv_store: InMemoryKeyValueStore) -> JobStateStore:
    return JobStateStore(kv_store)


@pytest.fixture
def statuses(kv_store: InMemoryKeyValueStore) -> StatusStore:
    return StatusStore(kv_store)


@pytest.fixture
def picker_client() -> FakePickerClient:
    return FakePickerClient()


@pytest.fixture
def file_client() -> FakeMediaFileClient:
    return FakeMediaFileClient()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def driver(
    jobs: JobStateStore,
    statuses: StatusStore,
    picker_client: FakePickerClient,
    file_client: FakeMediaFileClient,
    blob_store: InMemoryBlobStore,
    clock: FixedClock,
) -> JobDriver:
    return JobDriver(
        jobs=jobs,
        statuses=statuses,
        picker_client=picker_client,
        transfer_worker=TransferWorker(file_client=file_client, blob_store=blob_store),
        retry_policy=RetryPolicy(max_failures=3, base_seconds=30, max_seconds=300),
        clock=clock,
    )


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def import_service(
    identity_provider: FakeIdentityProvider,
    picker_client: FakePickerClient,
    jobs: JobStateStore,
    statuses: StatusStore,
) -> ImportService:
    return ImportService(
        identity_provider=identity_provider,
        picker_client=picker_client,
        jobs=jobs,
        statuses=statuses,
    )


@pytest.fixture
def container(
    settings: Settings,
    import_service: ImportService,
    driver: JobDriver,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        authenticator=FakeAuthenticator(),
        import_service=import_service,
        job_driver=driver,
        step_runner=StepRunner(driver),
        close_resources=close_resources,
    )
