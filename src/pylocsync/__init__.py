"""pylocsync - Background location capture-and-sync core for delivery tracking."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pylocsync")
except PackageNotFoundError:
    __version__ = "0+local"
from pylocsync.client import LocSyncClient
from pylocsync.config import LocationAccuracy, LocSyncConfig, UpdateOptions
from pylocsync.controller import TrackingController
from pylocsync.exceptions import (
    DeliveryBatchError,
    GeocodeError,
    LocSyncApiError,
    LocSyncConfigError,
    LocSyncError,
    LocSyncTransportError,
    PermissionDeniedError,
    RegistrationError,
    RemoteNotFoundError,
    UnauthenticatedError,
)
from pylocsync.geocoding import AddressResolver, NominatimGeocoder, compose_address
from pylocsync.models import (
    AddressSource,
    GeocodedAddress,
    InvocationOutcome,
    LocationSample,
    PersistResult,
    RegistrationResult,
    ResolvedAddress,
    StopResult,
    SyncRecord,
    SyncTarget,
    TrackingSession,
    TrackingState,
)
from pylocsync.permissions import Capability, PermissionGate, PermissionResponse, PermissionScope, PermissionStatus
from pylocsync.registry import TaskRegistry
from pylocsync.scheduler import RegistrationHandle, TaskInvocation
from pylocsync.session import AuthSession, MemorySessionStore
from pylocsync.task import InvocationReport, LocationTask

__all__ = [
    "__version__",
    "AddressResolver",
    "AddressSource",
    "AuthSession",
    "Capability",
    "DeliveryBatchError",
    "GeocodeError",
    "GeocodedAddress",
    "InvocationOutcome",
    "InvocationReport",
    "LocSyncApiError",
    "LocSyncClient",
    "LocSyncConfig",
    "LocSyncConfigError",
    "LocSyncError",
    "LocSyncTransportError",
    "LocationAccuracy",
    "LocationSample",
    "LocationTask",
    "MemorySessionStore",
    "NominatimGeocoder",
    "PermissionDeniedError",
    "PermissionGate",
    "PermissionResponse",
    "PermissionScope",
    "PermissionStatus",
    "PersistResult",
    "RegistrationError",
    "RegistrationHandle",
    "RegistrationResult",
    "RemoteNotFoundError",
    "ResolvedAddress",
    "StopResult",
    "SyncRecord",
    "SyncTarget",
    "TaskInvocation",
    "TaskRegistry",
    "TrackingController",
    "TrackingSession",
    "TrackingState",
    "UnauthenticatedError",
    "UpdateOptions",
    "compose_address",
]
