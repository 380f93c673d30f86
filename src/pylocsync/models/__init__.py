"""Data models for fixes, addresses and remote records."""

from pylocsync.models._base import LocSyncBaseModel
from pylocsync.models.address import AddressSource, GeocodedAddress, ResolvedAddress
from pylocsync.models.sample import LocationSample
from pylocsync.models.sync import SyncRecord, SyncTarget
from pylocsync.models.tracking import (
    InvocationOutcome,
    PersistResult,
    RegistrationResult,
    StopResult,
    TrackingSession,
    TrackingState,
)

__all__ = [
    "AddressSource",
    "GeocodedAddress",
    "InvocationOutcome",
    "LocSyncBaseModel",
    "LocationSample",
    "PersistResult",
    "RegistrationResult",
    "ResolvedAddress",
    "StopResult",
    "SyncRecord",
    "SyncTarget",
    "TrackingSession",
    "TrackingState",
]
