"""Models for Google Photos Picker sessions."""

from dataclasses import dataclass

from photo_import.domain.jobs import MediaItem
from photo_import.errors import DataError

DEFAULT_POLL_INTERVAL_SECONDS = 5.0


@dataclass(frozen=True)
class RemoteSession:
    """Picker session as reported by the Picker API. Never persisted verbatim."""

    id: str
    picker_uri: str
    poll_interval_seconds: float
    media_selected: bool
    expire_time: str | None = None

    @classmethod
    def from_api(cls, payload: dict[str, object]) -> "RemoteSession":
        """Build a session from a Picker API session resource."""
        session_id = payload.get("id")
        if not isinstance(session_id, str) or not session_id:
            raise DataError("Picker session is missing an id")
        polling = payload.get("pollingConfig")
        interval = None
        if isinstance(polling, dict):
            interval = polling.get("pollInterval")
        expire_time = payload.get("expireTime")
        return cls(
            id=session_id,
            picker_uri=str(payload.get("pickerUri") or ""),
            poll_interval_seconds=parse_duration(interval),
            media_selected=bool(payload.get("mediaItemsSet", False)),
            expire_time=expire_time if isinstance(expire_time, str) else None,
        )


@dataclass(frozen=True)
class MediaItemsPage:
    """One page of picked media items."""

    items: list[MediaItem]
    next_page_token: str | None = None


def parse_duration(value: object) -> float:
    """Parse a protobuf Duration string such as "5s" or "2.5s"."""
    if isinstance(value, int | float):
        return float(value)
    if not isinstance(value, str):
        return DEFAULT_POLL_INTERVAL_SECONDS
    cleaned = value.strip().removesuffix("s")
    try:
        return float(cleaned)
    except ValueError:
        return DEFAULT_POLL_INTERVAL_SECONDS
