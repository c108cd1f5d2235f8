"""Domain models for import jobs and their UI-facing status."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from photo_import.errors import DataError


class MediaType(StrEnum):
    """Media type values used by the Picker API."""

    UNSPECIFIED = "TYPE_UNSPECIFIED"
    PHOTO = "PHOTO"
    VIDEO = "VIDEO"


class JobStage(StrEnum):
    """Explicit stage of an import job."""

    AWAITING_SELECTION = "AWAITING_SELECTION"
    FETCHING = "FETCHING"
    TRANSFERRING = "TRANSFERRING"
    DONE = "DONE"


class MediaItem(BaseModel):
    """A single picked photo or video with what is needed to transfer it."""

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: str
    type: MediaType = MediaType.UNSPECIFIED
    source_url: str
    mime_type: str | None = None
    filename: str
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)

    @property
    def blob_key(self) -> str:
        """Deterministic storage key, so repeated transfers overwrite."""
        return f"{self.created_at}-{self.filename}"

    @classmethod
    def from_api(cls, payload: dict[str, object]) -> "MediaItem":
        """Build an item from a Picker API PickedMediaItem resource."""
        media_file = payload.get("mediaFile")
        if not isinstance(media_file, dict):
            raise DataError(f"Media item {payload.get('id')} has no mediaFile")
        metadata = media_file.get("mediaFileMetadata") or {}
        if not isinstance(metadata, dict):
            metadata = {}
        try:
            media_type = MediaType(payload.get("type") or MediaType.UNSPECIFIED)
        except ValueError:
            media_type = MediaType.UNSPECIFIED
        for field_name, value in (
            ("id", payload.get("id")),
            ("createTime", payload.get("createTime")),
            ("baseUrl", media_file.get("baseUrl")),
            ("filename", media_file.get("filename")),
        ):
            if not isinstance(value, str) or not value:
                raise DataError(f"Media item is missing {field_name}")
        try:
            return cls(
                id=str(payload["id"]),
                created_at=str(payload["createTime"]),
                type=media_type,
                source_url=str(media_file["baseUrl"]),
                mime_type=media_file.get("mimeType"),
                filename=str(media_file["filename"]),
                width=int(metadata.get("width") or 0),
                height=int(metadata.get("height") or 0),
            )
        except ValueError as exc:
            raise DataError(
                f"Media item {payload['id']} has malformed metadata"
            ) from exc


class JobRecord(BaseModel):
    """Authoritative state of one owner's import job."""

    owner_id: str
    remote_session_id: str
    access_token: str
    token_expires_at: datetime | None = None
    stage: JobStage = JobStage.AWAITING_SELECTION
    pending_items: list[MediaItem] = Field(default_factory=list)
    failed_attempts: int = Field(default=0, ge=0)
    last_failure_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def session_complete(self) -> bool:
        """Return true once the user finished picking."""
        return self.stage != JobStage.AWAITING_SELECTION

    @property
    def items_fetched(self) -> bool:
        """Return true once the full selection has been listed."""
        return self.stage in {JobStage.TRANSFERRING, JobStage.DONE}

    @model_validator(mode="after")
    def _check_pending_items(self) -> "JobRecord":
        if self.pending_items and self.stage != JobStage.TRANSFERRING:
            raise ValueError(f"pending items are not allowed in stage {self.stage}")
        return self

    def token_expired(self, now: datetime | None = None) -> bool:
        """Return true when the stored access token is known to be expired."""
        if self.token_expires_at is None:
            return False
        return (now or datetime.now(tz=UTC)) >= self.token_expires_at


class StatusRecord(BaseModel):
    """Lightweight progress shown to the polling UI."""

    owner_id: str
    message: str
    finished: bool = False
    retryable: bool = False
    updated_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
