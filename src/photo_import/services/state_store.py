"""Keyed durable stores for job records and UI status."""

from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from photo_import.domain.jobs import JobRecord, StatusRecord
from photo_import.errors import DataError

JOB_PREFIX = "job:"
STATUS_PREFIX = "status:"


class KeyValueStore(Protocol):
    """Last-write-wins keyed store of JSON documents."""

    def put(self, key: str, value: dict[str, object]) -> None:
        """Store a document under a key, replacing any previous value."""

    def get(self, key: str) -> dict[str, object] | None:
        """Return the document stored under a key, if present."""

    def delete(self, key: str) -> None:
        """Delete a key. Deleting a missing key is not an error."""

    def list_keys(self, prefix: str) -> list[str]:
        """Return all keys starting with a prefix."""


@dataclass
class JobStateStore:
    """Authoritative job records, one per owner."""

    store: KeyValueStore

    def put(self, record: JobRecord) -> None:
        """Persist a job record."""
        self.store.put(_job_key(record.owner_id), record.model_dump(mode="json"))

    def get(self, owner_id: str) -> JobRecord | None:
        """Return the job record for an owner, if present."""
        raw = self.store.get(_job_key(owner_id))
        if raw is None:
            return None
        try:
            return JobRecord.model_validate(raw)
        except ValidationError as exc:
            raise DataError(f"Stored job for {owner_id} is malformed") from exc

    def delete(self, owner_id: str) -> None:
        """Delete the job record for an owner."""
        self.store.delete(_job_key(owner_id))

    def list_owner_ids(self) -> list[str]:
        """Return owners that currently have a job record."""
        return [
            key.removeprefix(JOB_PREFIX) for key in self.store.list_keys(JOB_PREFIX)
        ]


@dataclass
class StatusStore:
    """UI-facing progress messages, independent of job state."""

    store: KeyValueStore

    def publish(
        self,
        owner_id: str,
        message: str,
        finished: bool = False,
        retryable: bool = False,
    ) -> StatusRecord:
        """Overwrite the status for an owner and return it."""
        record = StatusRecord(
            owner_id=owner_id,
            message=message,
            finished=finished,
            retryable=retryable,
        )
        self.store.put(_status_key(owner_id), record.model_dump(mode="json"))
        return record

    def get(self, owner_id: str) -> StatusRecord | None:
        """Return the latest status for an owner, if present."""
        raw = self.store.get(_status_key(owner_id))
        if raw is None:
            return None
        try:
            return StatusRecord.model_validate(raw)
        except ValidationError as exc:
            raise DataError(f"Stored status for {owner_id} is malformed") from exc

    def delete(self, owner_id: str) -> None:
        """Delete the status for an owner."""
        self.store.delete(_status_key(owner_id))


def _job_key(owner_id: str) -> str:
    return f"{JOB_PREFIX}{owner_id}"


def _status_key(owner_id: str) -> str:
    return f"{STATUS_PREFIX}{owner_id}"
