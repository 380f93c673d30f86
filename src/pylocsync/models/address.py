"""Reverse geocoding models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from pylocsync.models._base import LocSyncBaseModel


class AddressSource(StrEnum):
    GEOCODED = "geocoded"
    RAW_COORDINATES = "raw_coordinates"


class GeocodedAddress(LocSyncBaseModel):
    """One candidate returned by a reverse geocode lookup.

    Every field is optional; absent or blank values are ``None``.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True, str_strip_whitespace=True)

    street_number: str | None = None
    street: str | None = None
    city: str | None = None
    region: str | None = None
    postal_code: str | None = None
    country: str | None = None
    district: str | None = None
    subregion: str | None = None


class ResolvedAddress(BaseModel):
    """Human-readable location text derived from a fix."""

    model_config = ConfigDict(frozen=True)

    text: str
    source: AddressSource

    @property
    def is_geocoded(self) -> bool:
        return self.source is AddressSource.GEOCODED
