"""Tracking lifecycle controller.

States::

    IDLE --start--> STARTING --granted+registered--> ACTIVE
    STARTING --denied/registration failed--> IDLE
    ACTIVE --stop/teardown--> STOPPING --deregistered--> IDLE

Tracking is never resumed automatically after a process restart; hosts
call :meth:`TrackingController.start` (or
:meth:`TrackingController.sync_with_deliveries`) explicitly.
"""

from __future__ import annotations

import asyncio
import logging

from pylocsync.auth import SessionAuthenticator
from pylocsync.config import UpdateOptions
from pylocsync.exceptions import LocSyncError, UnauthenticatedError
from pylocsync.models.tracking import RegistrationResult, StopResult, TrackingSession, TrackingState
from pylocsync.permissions import PermissionGate
from pylocsync.persistence import SyncPersister
from pylocsync.registry import TaskRegistry

_logger = logging.getLogger(__name__)


class TrackingController:
    """Start and stop background tracking around the app lifecycle.

    Transitions are serialised: a start requested while a stop is in
    progress waits for the stop to finish before registering again.  A
    start requested while already starting or active is a no-op.
    """

    def __init__(
        self,
        gate: PermissionGate,
        registry: TaskRegistry,
        options: UpdateOptions,
        *,
        authenticator: SessionAuthenticator | None = None,
        persister: SyncPersister | None = None,
    ) -> None:
        self._gate = gate
        self._registry = registry
        self._options = options
        self._authenticator = authenticator
        self._persister = persister
        self._state = TrackingState.IDLE
        self._session = TrackingSession()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> TrackingState:
        return self._state

    @property
    def session(self) -> TrackingSession:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._state is TrackingState.ACTIVE

    def _set_state(self, state: TrackingState) -> None:
        if state is not self._state:
            _logger.debug("Tracking state %s -> %s", self._state, state)
        self._state = state
        self._session.active = state is TrackingState.ACTIVE

    async def start(self) -> RegistrationResult:
        """Acquire permissions and register the capture task.

        Raises
        ------
        PermissionDeniedError
            A positioning scope was denied.  The controller returns to IDLE.
        RegistrationError
            The scheduler failed.  The controller returns to IDLE.
        """
        if self._state in (TrackingState.STARTING, TrackingState.ACTIVE):
            return RegistrationResult.ALREADY_REGISTERED

        async with self._lock:
            if self._state is TrackingState.ACTIVE:
                return RegistrationResult.ALREADY_REGISTERED
            self._set_state(TrackingState.STARTING)
            try:
                capability = await self._gate.ensure_capability()
                result = await self._registry.start(capability, self._options)
            except BaseException:
                self._set_state(TrackingState.IDLE)
                raise
            self._set_state(TrackingState.ACTIVE)
            return result

    async def stop(self) -> StopResult:
        """Deregister the capture task.

        Also clears a registration left behind by an earlier process even
        when this controller never started it.
        """
        async with self._lock:
            previous = self._state
            self._set_state(TrackingState.STOPPING)
            try:
                result = await self._registry.stop()
            except BaseException:
                self._set_state(previous)
                raise
            self._set_state(TrackingState.IDLE)
            return result

    async def teardown(self) -> None:
        """Stop tracking on component teardown, logging instead of raising."""
        try:
            await self.stop()
        except LocSyncError as exc:
            _logger.error("Failed to stop background location tracking on teardown: %s", exc)

    async def sync_with_deliveries(self) -> RegistrationResult | StopResult | None:
        """Track while the signed-in courier has an in-transit delivery.

        Starts tracking when at least one in-transit record exists for the
        current identity and stops it otherwise.  Returns ``None`` without
        touching the registration when nobody is signed in.
        """
        if self._authenticator is None or self._persister is None:
            raise LocSyncError("sync_with_deliveries requires an authenticator and a persister")
        try:
            identity_id = await self._authenticator.current_identity()
        except UnauthenticatedError:
            _logger.debug("No authenticated user; leaving tracking unchanged")
            return None

        active = await self._persister.count_active(identity_id)
        if active > 0:
            return await self.start()
        _logger.info("No deliveries in transit; location tracking inactive")
        return await self.stop()
