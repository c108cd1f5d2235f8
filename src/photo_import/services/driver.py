"""Resumable import job driver.

Each call to :meth:`JobDriver.step` advances one owner's job as far as it safely
can and persists after every confirmed sub-operation. Nothing is kept in memory
between calls; progress resumes from the persisted record on the next external
trigger. Steps may run concurrently for the same owner: the worst outcome is a
repeated transfer of the in-flight item, which overwrites the same blob key.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from photo_import.adapters.picker_client import PickerClient, iter_items
from photo_import.domain.jobs import JobRecord, JobStage
from photo_import.errors import DataError, TransientError
from photo_import.services.state_store import JobStateStore, StatusStore
from photo_import.services.transfer import TransferWorker

logger = logging.getLogger(__name__)

WAITING_MESSAGE = "waiting"
FINISHED_MESSAGE = "finished"
SIGN_IN_AGAIN_MESSAGE = "authorization expired, sign in again"
GAVE_UP_MESSAGE = "import failed repeatedly, sign in to start again"


class StepResult(StrEnum):
    """Outcome of a single driver step."""

    NO_JOB = "no_job"
    WAITING = "waiting"
    BACKING_OFF = "backing_off"
    GAVE_UP = "gave_up"
    AUTH_EXPIRED = "auth_expired"
    PROGRESSED = "progressed"
    COMPLETED = "completed"
    ALREADY_RUNNING = "already_running"
    FAILED = "failed"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff applied between failed steps."""

    max_failures: int = 5
    base_seconds: int = 30
    max_seconds: int = 900

    def exhausted(self, failed_attempts: int) -> bool:
        """Return true once no further attempts should be made."""
        return self.max_failures > 0 and failed_attempts >= self.max_failures

    def next_attempt_at(
        self, failed_attempts: int, last_failure_at: datetime | None
    ) -> datetime | None:
        """Return the earliest time another step may run."""
        if failed_attempts <= 0 or last_failure_at is None:
            return None
        delay = min(self.base_seconds * 2 ** (failed_attempts - 1), self.max_seconds)
        return last_failure_at + timedelta(seconds=delay)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class JobDriver:
    """Advances import jobs one externally triggered step at a time."""

    jobs: JobStateStore
    statuses: StatusStore
    picker_client: PickerClient
    transfer_worker: TransferWorker
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    max_items_per_step: int | None = None
    clock: Callable[[], datetime] = _utcnow

    async def step(self, owner_id: str) -> StepResult:
        """Run one step of the owner's job.

        Raises TransientError or DataError when a sub-call fails. The job then
        keeps its last persisted progress and only its failure counter moves.
        """
        job = self.jobs.get(owner_id)
        if job is None:
            return StepResult.NO_JOB

        now = self.clock()
        if self.retry_policy.exhausted(job.failed_attempts):
            self.statuses.publish(owner_id, GAVE_UP_MESSAGE, retryable=True)
            return StepResult.GAVE_UP
        next_attempt_at = self.retry_policy.next_attempt_at(
            job.failed_attempts, job.last_failure_at
        )
        if next_attempt_at is not None and now < next_attempt_at:
            return StepResult.BACKING_OFF
        if job.token_expired(now):
            logger.warning("Access token expired", extra={"owner_id": owner_id})
            self.statuses.publish(owner_id, SIGN_IN_AGAIN_MESSAGE, retryable=True)
            return StepResult.AUTH_EXPIRED

        try:
            return await self._advance(job)
        except (TransientError, DataError):
            logger.exception(
                "Import step failed",
                extra={"owner_id": owner_id, "stage": str(job.stage)},
            )
            try:
                self._record_failure(owner_id, now)
            except (TransientError, DataError):
                logger.exception(
                    "Failed to record step failure", extra={"owner_id": owner_id}
                )
            raise

    async def _advance(self, job: JobRecord) -> StepResult:
        owner_id = job.owner_id
        if job.stage == JobStage.AWAITING_SELECTION:
            session = await self.picker_client.get_session(
                job.access_token, job.remote_session_id
            )
            if not session.media_selected:
                self.statuses.publish(owner_id, WAITING_MESSAGE)
                if job.failed_attempts:
                    self._persist(job)
                return StepResult.WAITING
            job = self._persist(job, stage=JobStage.FETCHING)

        if job.stage == JobStage.FETCHING:
            items = [
                item
                async for item in iter_items(
                    self.picker_client, job.access_token, job.remote_session_id
                )
            ]
            job = self._persist(job, stage=JobStage.TRANSFERRING, pending_items=items)
            logger.info(
                "Listed picked items",
                extra={"owner_id": owner_id, "count": len(items)},
            )

        transferred = 0
        while job.pending_items:
            if (
                self.max_items_per_step is not None
                and transferred >= self.max_items_per_step
            ):
                return StepResult.PROGRESSED
            item = job.pending_items[0]
            self.statuses.publish(owner_id, f"fetching {item.filename}")
            payload = await self.transfer_worker.fetch(item, job.access_token)
            self.statuses.publish(owner_id, f"uploading {item.filename}")
            self.transfer_worker.store(item, payload)
            job = self._persist(job, pending_items=job.pending_items[1:])
            transferred += 1

        self._persist(job, stage=JobStage.DONE)
        self.jobs.delete(owner_id)
        self.statuses.publish(owner_id, FINISHED_MESSAGE, finished=True)
        logger.info(
            "Import finished",
            extra={"owner_id": owner_id, "transferred": transferred},
        )
        return StepResult.COMPLETED

    def _persist(self, job: JobRecord, **changes: object) -> JobRecord:
        updated = JobRecord.model_validate(
            {
                **job.model_dump(),
                **changes,
                "failed_attempts": 0,
                "last_failure_at": None,
            }
        )
        self.jobs.put(updated)
        return updated

    def _record_failure(self, owner_id: str, failed_at: datetime) -> None:
        current = self.jobs.get(owner_id)
        if current is None:
            return
        self.jobs.put(
            current.model_copy(
                update={
                    "failed_attempts": current.failed_attempts + 1,
                    "last_failure_at": failed_at,
                }
            )
        )
