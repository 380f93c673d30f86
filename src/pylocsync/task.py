"""The background capture handler run once per scheduler invocation."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from pylocsync.auth import SessionAuthenticator
from pylocsync.exceptions import DeliveryBatchError, LocSyncError, UnauthenticatedError
from pylocsync.geocoding import AddressResolver
from pylocsync.models.address import ResolvedAddress
from pylocsync.models.sample import LocationSample
from pylocsync.models.tracking import InvocationOutcome, PersistResult
from pylocsync.persistence import SyncPersister
from pylocsync.scheduler import TaskInvocation

_logger = logging.getLogger(__name__)

_PERSIST_OUTCOMES: dict[PersistResult, InvocationOutcome] = {
    PersistResult.PERSISTED: InvocationOutcome.PERSISTED,
    PersistResult.NOT_FOUND: InvocationOutcome.NOT_FOUND,
    PersistResult.REMOTE_ERROR: InvocationOutcome.REMOTE_ERROR,
}


@dataclass(frozen=True, slots=True)
class InvocationReport:
    """What one invocation did with its batch."""

    outcome: InvocationOutcome
    sample: LocationSample | None = None
    address: ResolvedAddress | None = None
    identity_id: str | None = None
    discarded: int = 0


class LocationTask:
    """Process the most recent fix of a batch: resolve, authenticate, persist.

    Steps run sequentially.  Every failure degrades to skipping the fix;
    nothing is raised back to the scheduler.
    """

    def __init__(
        self,
        resolver: AddressResolver,
        authenticator: SessionAuthenticator,
        persister: SyncPersister,
    ) -> None:
        self._resolver = resolver
        self._authenticator = authenticator
        self._persister = persister

    async def __call__(self, invocation: TaskInvocation) -> InvocationReport:
        try:
            return await self._run(invocation)
        except Exception:
            _logger.exception("Unhandled error in background location task")
            return InvocationReport(outcome=InvocationOutcome.BATCH_ERROR)

    async def _run(self, invocation: TaskInvocation) -> InvocationReport:
        if invocation.error is not None:
            error = DeliveryBatchError(f"Location delivery failed: {invocation.error}", cause=invocation.error)
            _logger.error("Background location task error: %s", error)
            return InvocationReport(outcome=InvocationOutcome.BATCH_ERROR)

        locations = invocation.locations
        if not locations:
            _logger.debug("Empty location batch")
            return InvocationReport(outcome=InvocationOutcome.EMPTY_BATCH)

        discarded = len(locations) - 1
        latest = locations[-1]
        try:
            sample = latest if isinstance(latest, LocationSample) else LocationSample.model_validate(latest)
        except ValidationError as exc:
            _logger.warning("Dropping location fix with invalid coordinates: %s", exc.errors(include_url=False))
            return InvocationReport(outcome=InvocationOutcome.INVALID_SAMPLE, discarded=discarded)

        _logger.debug("Background location: %s (discarded %d older)", sample, discarded)
        address = await self._resolver.resolve(sample)

        try:
            identity_id = await self._authenticator.current_identity()
        except UnauthenticatedError as exc:
            _logger.warning("No authenticated user; skipping location update (%s)", exc)
            return InvocationReport(
                outcome=InvocationOutcome.UNAUTHENTICATED,
                sample=sample,
                address=address,
                discarded=discarded,
            )
        except LocSyncError as exc:
            _logger.error("Could not resolve the authenticated user; skipping location update: %s", exc)
            return InvocationReport(
                outcome=InvocationOutcome.REMOTE_ERROR,
                sample=sample,
                address=address,
                discarded=discarded,
            )

        result = await self._persister.persist(identity_id, address, sample)
        return InvocationReport(
            outcome=_PERSIST_OUTCOMES[result],
            sample=sample,
            address=address,
            identity_id=identity_id,
            discarded=discarded,
        )
