"""Scheduler interface the capture task is registered with.

The platform owns the positioning subsystem and revives the handler on
its own schedule with a batch of fixes.  This library only depends on
the :class:`Scheduler` protocol; hosts inject the platform binding and
tests inject a deterministic fake.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from pylocsync.config import UpdateOptions
from pylocsync.models.sample import LocationSample


@dataclass(frozen=True, slots=True)
class TaskInvocation:
    """One scheduler-triggered delivery.

    ``locations`` holds raw platform payloads or already parsed
    :class:`LocationSample` objects, oldest first.  ``error`` is set
    instead when the platform failed to deliver fixes.
    """

    locations: Sequence[dict[str, Any] | LocationSample] = field(default_factory=tuple)
    error: Any = None

    @classmethod
    def from_payload(cls, data: Any, error: Any = None) -> TaskInvocation:
        """Build an invocation from the platform's ``{"locations": [...]}`` dict."""
        locations: Any = None
        if isinstance(data, dict):
            locations = data.get("locations")
        if not isinstance(locations, (list, tuple)):
            locations = ()
        return cls(locations=tuple(locations), error=error)


TaskHandler = Callable[[TaskInvocation], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class RegistrationHandle:
    """Opaque token returned by :meth:`Scheduler.register`."""

    task_name: str
    token: Any = None


class Scheduler(Protocol):
    """Platform background scheduler."""

    async def register(self, task_name: str, handler: TaskHandler, options: UpdateOptions) -> RegistrationHandle:
        ...

    async def deregister(self, handle: RegistrationHandle) -> None:
        ...

    async def has_registration(self, task_name: str) -> bool:
        ...
