"""Task registry: at most one scheduler registration of the capture task."""

from __future__ import annotations

import asyncio
import logging

from pylocsync._constants import TASK_NAME
from pylocsync.config import UpdateOptions
from pylocsync.exceptions import RegistrationError
from pylocsync.models.tracking import RegistrationResult, StopResult
from pylocsync.permissions import Capability
from pylocsync.scheduler import RegistrationHandle, Scheduler, TaskHandler

_logger = logging.getLogger(__name__)


class TaskRegistry:
    """Register and deregister the capture task idempotently.

    Whether a registration exists is always asked of the scheduler, since
    a local handle does not survive a process restart while the
    platform-held registration does.  ``start`` and ``stop`` are
    serialised, so a stop immediately followed by a start can never
    leave two registrations behind.
    """

    def __init__(self, scheduler: Scheduler, handler: TaskHandler, *, task_name: str = TASK_NAME) -> None:
        self._scheduler = scheduler
        self._handler = handler
        self._task_name = task_name
        self._handle: RegistrationHandle | None = None
        self._lock = asyncio.Lock()

    @property
    def task_name(self) -> str:
        return self._task_name

    async def is_registered(self) -> bool:
        try:
            return await self._scheduler.has_registration(self._task_name)
        except Exception as exc:
            raise RegistrationError(f"Could not query registration of {self._task_name}: {exc}") from exc

    async def start(self, capability: Capability, options: UpdateOptions) -> RegistrationResult:
        """Register the capture task unless the scheduler already holds it.

        Raises
        ------
        RegistrationError
            If *capability* is missing or the scheduler fails.
        """
        if not isinstance(capability, Capability):
            raise RegistrationError("A granted location capability is required to register the capture task")

        async with self._lock:
            if await self.is_registered():
                _logger.debug("Capture task %s already registered", self._task_name)
                return RegistrationResult.ALREADY_REGISTERED
            try:
                self._handle = await self._scheduler.register(self._task_name, self._handler, options)
            except Exception as exc:
                raise RegistrationError(f"Could not register {self._task_name}: {exc}") from exc
            _logger.info(
                "Background location tracking started (interval=%dms, distance=%sm, accuracy=%s)",
                options.time_interval_ms,
                options.distance_interval_m,
                options.accuracy.name,
            )
            return RegistrationResult.REGISTERED

    async def stop(self) -> StopResult:
        """Deregister the capture task if the scheduler holds it.

        An invocation already in flight is not interrupted.
        """
        async with self._lock:
            if not await self.is_registered():
                self._handle = None
                return StopResult.NOT_REGISTERED
            handle = self._handle or RegistrationHandle(task_name=self._task_name)
            try:
                await self._scheduler.deregister(handle)
            except Exception as exc:
                raise RegistrationError(f"Could not deregister {self._task_name}: {exc}") from exc
            self._handle = None
            _logger.info("Background location tracking stopped")
            return StopResult.STOPPED
