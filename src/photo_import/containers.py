"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from photo_import.adapters.google_oauth_client import HttpxGoogleOAuthClient
from photo_import.adapters.media_file_client import HttpxMediaFileClient
from photo_import.adapters.picker_client import HttpxPickerClient
from photo_import.adapters.supabase_authenticator import (
    RequestAuthenticator,
    SupabaseRequestAuthenticator,
)
from photo_import.adapters.supabase_blob_store import SupabaseBlobStore
from photo_import.adapters.supabase_kv_store import SupabaseKeyValueStore
from photo_import.config import Settings
from photo_import.services.driver import JobDriver, RetryPolicy
from photo_import.services.imports import ImportService
from photo_import.services.state_store import JobStateStore, StatusStore
from photo_import.services.steps import StepRunner
from photo_import.services.transfer import TransferWorker


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    authenticator: RequestAuthenticator
    import_service: ImportService
    job_driver: JobDriver
    step_runner: StepRunner
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    kv_store = SupabaseKeyValueStore(supabase_client, table=resolved_settings.kv_table)
    jobs = JobStateStore(kv_store)
    statuses = StatusStore(kv_store)
    picker_client = HttpxPickerClient.create(
        base_url=resolved_settings.picker_base_url,
        page_size=resolved_settings.picker_page_size,
    )
    media_file_client = HttpxMediaFileClient.create()
    oauth_client = HttpxGoogleOAuthClient.create(
        client_id=resolved_settings.google_client_id,
        client_secret=resolved_settings.google_client_secret,
        auth_url=resolved_settings.google_auth_url,
        token_url=resolved_settings.google_token_url,
    )
    transfer_worker = TransferWorker(
        file_client=media_file_client,
        blob_store=SupabaseBlobStore(
            supabase_client, bucket=resolved_settings.blob_bucket
        ),
    )
    job_driver = JobDriver(
        jobs=jobs,
        statuses=statuses,
        picker_client=picker_client,
        transfer_worker=transfer_worker,
        retry_policy=RetryPolicy(
            max_failures=resolved_settings.max_step_failures,
            base_seconds=resolved_settings.retry_base_seconds,
            max_seconds=resolved_settings.retry_max_seconds,
        ),
        max_items_per_step=resolved_settings.max_items_per_step,
    )
    import_service = ImportService(
        identity_provider=oauth_client,
        picker_client=picker_client,
        jobs=jobs,
        statuses=statuses,
    )
    authenticator = SupabaseRequestAuthenticator(
        supabase_client, cookie_name=resolved_settings.auth_cookie_name
    )

    async def close_resources() -> None:
        await picker_client.close()
        await media_file_client.close()
        await oauth_client.close()

    return AppContainer(
        settings=resolved_settings,
        authenticator=authenticator,
        import_service=import_service,
        job_driver=job_driver,
        step_runner=StepRunner(job_driver),
        close_resources=close_resources,
    )
