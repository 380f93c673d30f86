"""Remote "current location" record models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pylocsync._constants import IN_TRANSIT_STATUS, to_ewkt_point
from pylocsync.models.address import ResolvedAddress
from pylocsync.models.sample import LocationSample


class SyncTarget(BaseModel):
    """Selects the remote record a fix applies to.

    At most one record per identity carries the in-transit status at a
    time; the remote data model enforces that, not this library.
    """

    model_config = ConfigDict(frozen=True)

    identity_id: str = Field(min_length=1)
    active_status_code: int = IN_TRANSIT_STATUS


class SyncRecord(BaseModel):
    """Columns overwritten on every successful fix.  No history is kept."""

    model_config = ConfigDict(frozen=True)

    current_location_text: str
    current_location_geo: str

    @classmethod
    def from_fix(cls, resolved: ResolvedAddress, sample: LocationSample) -> SyncRecord:
        return cls(
            current_location_text=resolved.text,
            current_location_geo=to_ewkt_point(sample.latitude, sample.longitude),
        )

    def to_row(self) -> dict[str, Any]:
        """Column mapping sent to the remote store."""
        return {
            "current_location": self.current_location_text,
            "current_location_geo": self.current_location_geo,
        }
