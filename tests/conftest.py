from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import pytest

from pylocsync.config import UpdateOptions
from pylocsync.exceptions import RemoteNotFoundError, UnauthenticatedError
from pylocsync.models.address import GeocodedAddress
from pylocsync.models.sync import SyncRecord, SyncTarget
from pylocsync.permissions import PermissionResponse, PermissionStatus
from pylocsync.scheduler import RegistrationHandle, TaskHandler, TaskInvocation


class FakeScheduler:
    """Deterministic scheduler: registrations live in a dict, batches are delivered on demand."""

    def __init__(self, *, yield_on_calls: bool = False) -> None:
        self.handlers: dict[str, TaskHandler] = {}
        self.register_calls = 0
        self.deregister_calls = 0
        self.last_options: UpdateOptions | None = None
        self.register_error: Exception | None = None
        self._yield = yield_on_calls

    async def _maybe_yield(self) -> None:
        if self._yield:
            await asyncio.sleep(0)

    async def register(self, task_name: str, handler: TaskHandler, options: UpdateOptions) -> RegistrationHandle:
        await self._maybe_yield()
        if self.register_error is not None:
            raise self.register_error
        if task_name in self.handlers:
            raise AssertionError(f"{task_name} registered twice")
        self.handlers[task_name] = handler
        self.register_calls += 1
        self.last_options = options
        return RegistrationHandle(task_name=task_name, token=self.register_calls)

    async def deregister(self, handle: RegistrationHandle) -> None:
        await self._maybe_yield()
        self.handlers.pop(handle.task_name, None)
        self.deregister_calls += 1

    async def has_registration(self, task_name: str) -> bool:
        await self._maybe_yield()
        return task_name in self.handlers

    async def deliver(self, task_name: str, locations: Sequence[Any], error: Any = None) -> Any:
        handler = self.handlers[task_name]
        return await handler(TaskInvocation(locations=tuple(locations), error=error))


@dataclass
class FakePermissions:
    foreground: PermissionStatus = PermissionStatus.GRANTED
    background: PermissionStatus = PermissionStatus.GRANTED
    already_granted: bool = False
    can_ask_again: bool = True
    calls: list[str] = field(default_factory=list)

    async def get_foreground_status(self) -> PermissionResponse:
        self.calls.append("get_foreground_status")
        status = PermissionStatus.GRANTED if self.already_granted else PermissionStatus.UNDETERMINED
        return PermissionResponse(status=status)

    async def request_foreground(self) -> PermissionResponse:
        self.calls.append("request_foreground")
        return PermissionResponse(status=self.foreground, can_ask_again=self.can_ask_again)

    async def request_background(self) -> PermissionResponse:
        self.calls.append("request_background")
        return PermissionResponse(status=self.background, can_ask_again=self.can_ask_again)


@dataclass
class FakeGeocoder:
    candidates: list[GeocodedAddress | Mapping[str, Any]] = field(default_factory=list)
    error: Exception | None = None
    delay: float = 0.0
    calls: list[tuple[float, float]] = field(default_factory=list)

    async def reverse_geocode(self, latitude: float, longitude: float) -> list[GeocodedAddress | Mapping[str, Any]]:
        self.calls.append((latitude, longitude))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.candidates)


@dataclass
class FakeIdentityResolver:
    identity: str | None = "courier-1"
    error: Exception | None = None
    calls: int = 0

    async def current_identity(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.identity is None:
            raise UnauthenticatedError("no session")
        return self.identity


@dataclass
class FakeRecordWriter:
    """In-memory delivery records keyed by identity; only in-transit rows are writable."""

    in_transit: set[str] = field(default_factory=lambda: {"courier-1"})
    errors: list[Exception] = field(default_factory=list)
    writes: list[tuple[SyncTarget, SyncRecord]] = field(default_factory=list)
    rows: dict[str, dict[str, Any]] = field(default_factory=dict)
    update_calls: int = 0

    async def update_current_location(self, target: SyncTarget, record: SyncRecord) -> None:
        self.update_calls += 1
        if self.errors:
            raise self.errors.pop(0)
        if target.identity_id not in self.in_transit:
            raise RemoteNotFoundError(f"no in-transit row for {target.identity_id}")
        self.writes.append((target, record))
        self.rows[target.identity_id] = record.to_row()

    async def count_matching(self, target: SyncTarget) -> int:
        return 1 if target.identity_id in self.in_transit else 0


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def permissions() -> FakePermissions:
    return FakePermissions()


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder(
        candidates=[GeocodedAddress(street="Main St", city="Pasay", region="NCR", country="PH")],
    )


@pytest.fixture
def identity() -> FakeIdentityResolver:
    return FakeIdentityResolver()


@pytest.fixture
def writer() -> FakeRecordWriter:
    return FakeRecordWriter()
