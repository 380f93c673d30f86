"""Position fix model."""

from __future__ import annotations

import logging
import math
from datetime import UTC, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from pylocsync._normalize import parse_epoch, safe_float

_logger = logging.getLogger(__name__)


class LocationSample(BaseModel):
    """A single device position fix.

    Parameters
    ----------
    latitude : float
        Latitude in degrees, ``-90..90``.
    longitude : float
        Longitude in degrees, ``-180..180``.
    captured_at : datetime
        When the fix was taken (UTC).  Epoch seconds or milliseconds
        are accepted.  Missing or unparseable values fall back
        to the current time.
    accuracy : float or None
        Horizontal accuracy radius in metres.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    latitude: float = Field(validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(validation_alias=AliasChoices("longitude", "lng", "lon"))
    captured_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        validation_alias=AliasChoices("captured_at", "capturedAt", "timestamp", "time"),
    )
    accuracy: float | None = Field(default=None, validation_alias=AliasChoices("accuracy", "horizontalAccuracy"))

    @model_validator(mode="before")
    @classmethod
    def _merge_coords(cls, values: Any) -> Any:
        # Platform payloads carry {"coords": {...}, "timestamp": ...}.
        if not isinstance(values, dict):
            return values
        coords = values.get("coords")
        if not isinstance(coords, dict):
            return values
        merged = dict(values)
        merged.pop("coords")
        for key, value in coords.items():
            merged.setdefault(key, value)
        return merged

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _require_number(cls, value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"coordinate must be a number, got {type(value).__name__}")
        number = float(value)
        if math.isnan(number) or math.isinf(number):
            raise ValueError("coordinate must be finite")
        return number

    @field_validator("latitude")
    @classmethod
    def _check_latitude(cls, value: float) -> float:
        if not -90.0 <= value <= 90.0:
            raise ValueError(f"latitude out of range: {value}")
        return value

    @field_validator("longitude")
    @classmethod
    def _check_longitude(cls, value: float) -> float:
        if not -180.0 <= value <= 180.0:
            raise ValueError(f"longitude out of range: {value}")
        return value

    @field_validator("captured_at", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> datetime:
        # Only coordinates can invalidate a fix.
        parsed = parse_epoch(value)
        if parsed is None:
            _logger.debug("Unparseable fix timestamp %r; using current time", value)
            return datetime.now(UTC)
        return parsed

    @field_validator("accuracy", mode="before")
    @classmethod
    def _coerce_accuracy(cls, value: Any) -> float | None:
        parsed = safe_float(value)
        if parsed is None or parsed < 0:
            return None
        return parsed
