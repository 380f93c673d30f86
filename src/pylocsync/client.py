"""High-level async client wiring the capture-and-sync core together."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from pylocsync._transport import RestTransport, Transport
from pylocsync.auth import IdentityResolver, SessionAuthenticator, SupabaseIdentityResolver
from pylocsync.config import LocSyncConfig
from pylocsync.controller import TrackingController
from pylocsync.exceptions import LocSyncError
from pylocsync.geocoding import AddressResolver, Geocoder, NominatimGeocoder
from pylocsync.models.tracking import RegistrationResult, StopResult, TrackingState
from pylocsync.permissions import PermissionGate, PermissionProvider
from pylocsync.persistence import PostgrestRecordWriter, RecordWriter, SyncPersister
from pylocsync.registry import TaskRegistry
from pylocsync.scheduler import Scheduler
from pylocsync.session import MemorySessionStore, SessionStore
from pylocsync.task import LocationTask

_logger = logging.getLogger(__name__)


class LocSyncClient:
    """Async entry point for hosts.

    The platform bindings (scheduler and permission provider) are
    injected; remote collaborators default to Supabase and Nominatim and
    may be replaced for tests or other backends.

    Usage::

        async with LocSyncClient(config, scheduler=platform, permissions=platform) as client:
            await client.start_tracking()
    """

    def __init__(
        self,
        config: LocSyncConfig,
        *,
        scheduler: Scheduler,
        permissions: PermissionProvider,
        session_store: SessionStore | None = None,
        http_session: aiohttp.ClientSession | None = None,
        geocoder: Geocoder | None = None,
        identity_resolver: IdentityResolver | None = None,
        record_writer: RecordWriter | None = None,
    ) -> None:
        if identity_resolver is None or record_writer is None:
            config.require_remote()
        self._config = config
        self._scheduler = scheduler
        self._permissions = permissions
        self._store: SessionStore = session_store if session_store is not None else MemorySessionStore()
        self._external_session = http_session is not None
        self._http_session = http_session
        self._geocoder = geocoder
        self._identity_resolver = identity_resolver
        self._record_writer = record_writer
        self._transport: Transport | None = None
        self._task: LocationTask | None = None
        self._controller: TrackingController | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> LocSyncClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = RestTransport(self._config, self._http_session)
        self._build()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._controller is not None:
            await self._controller.teardown()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None
        self._task = None
        self._controller = None

    def _build(self) -> None:
        assert self._transport is not None  # noqa: S101
        assert self._http_session is not None  # noqa: S101
        geocoder = self._geocoder or NominatimGeocoder(self._http_session, base_url=self._config.geocoder_url)
        resolver = self._identity_resolver or SupabaseIdentityResolver(self._config, self._transport, self._store)
        writer = self._record_writer or PostgrestRecordWriter(self._config, self._transport, self._store)

        authenticator = SessionAuthenticator(resolver)
        persister = SyncPersister(writer, active_status_code=self._config.in_transit_status)
        self._task = LocationTask(
            AddressResolver(geocoder, timeout=self._config.geocode_timeout),
            authenticator,
            persister,
        )
        registry = TaskRegistry(self._scheduler, self._task, task_name=self._config.task_name)
        self._controller = TrackingController(
            PermissionGate(self._permissions),
            registry,
            self._config.update_options,
            authenticator=authenticator,
            persister=persister,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_controller(self) -> TrackingController:
        if self._controller is None:
            raise LocSyncError("Client not initialized. Use 'async with LocSyncClient(...) as client:'")
        return self._controller

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def session_store(self) -> SessionStore:
        return self._store

    @property
    def task(self) -> LocationTask:
        """The handler registered with the scheduler."""
        if self._task is None:
            raise LocSyncError("Client not initialized. Use 'async with LocSyncClient(...) as client:'")
        return self._task

    @property
    def state(self) -> TrackingState:
        return self._require_controller().state

    @property
    def is_tracking(self) -> bool:
        return self._require_controller().is_active

    async def start_tracking(self) -> RegistrationResult:
        """Start background tracking (UI toggle on)."""
        return await self._require_controller().start()

    async def stop_tracking(self) -> StopResult:
        """Stop background tracking (UI toggle off)."""
        return await self._require_controller().stop()

    async def sync_with_deliveries(self) -> RegistrationResult | StopResult | None:
        """Start or stop tracking depending on whether a delivery is in transit."""
        return await self._require_controller().sync_with_deliveries()
