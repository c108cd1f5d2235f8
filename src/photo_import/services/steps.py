"""Runs driver steps outside the request that triggered them."""

import logging
from dataclasses import dataclass, field

from photo_import.errors import PhotoImportError
from photo_import.services.driver import JobDriver, StepResult

logger = logging.getLogger(__name__)


@dataclass
class StepRunner:
    """Executes driver steps as background work or from a scheduled sweep."""

    driver: JobDriver
    _in_flight: set[str] = field(default_factory=set)

    async def run(self, owner_id: str) -> StepResult:
        """Run one step for an owner, logging failures instead of raising."""
        if owner_id in self._in_flight:
            logger.info("Step already running", extra={"owner_id": owner_id})
            return StepResult.ALREADY_RUNNING
        self._in_flight.add(owner_id)
        try:
            result = await self.driver.step(owner_id)
        except PhotoImportError:
            logger.exception("Background step failed", extra={"owner_id": owner_id})
            return StepResult.FAILED
        finally:
            self._in_flight.discard(owner_id)
        logger.info(
            "Step finished", extra={"owner_id": owner_id, "result": str(result)}
        )
        return result

    async def sweep(self) -> dict[str, StepResult]:
        """Run one step for every owner with a persisted job."""
        results: dict[str, StepResult] = {}
        for owner_id in self.driver.jobs.list_owner_ids():
            results[owner_id] = await self.run(owner_id)
        return results
