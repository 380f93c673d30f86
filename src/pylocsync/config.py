"""Client configuration for pylocsync."""

from __future__ import annotations

import dataclasses
import enum
import os
from typing import Any

from pylocsync._constants import (
    DEFAULT_GEOCODER_URL,
    DEFAULT_IDENTITY_COLUMN,
    DEFAULT_STATUS_COLUMN,
    DEFAULT_TABLE,
    IN_TRANSIT_STATUS,
    TASK_NAME,
)
from pylocsync.exceptions import LocSyncConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


class LocationAccuracy(enum.IntEnum):
    """Accuracy tiers understood by the platform positioning subsystem."""

    LOWEST = 1
    LOW = 2
    BALANCED = 3
    HIGH = 4
    HIGHEST = 5
    BEST_FOR_NAVIGATION = 6


@dataclasses.dataclass(frozen=True)
class UpdateOptions:
    """Parameters handed to the scheduler when registering the capture task.

    Parameters
    ----------
    time_interval_ms : int
        Minimum time between fixes in milliseconds.
    distance_interval_m : float
        Minimum displacement between fixes in metres.
    accuracy : LocationAccuracy
        Requested accuracy tier.
    shows_background_indicator : bool
        Show a persistent indicator while the task is registered.
    indicator_title : str
        Title of the persistent indicator.
    indicator_body : str
        Body text of the persistent indicator.
    pauses_updates_automatically : bool
        Allow the platform to pause updates when the device is stationary.
    """

    time_interval_ms: int = 5000
    distance_interval_m: float = 10.0
    accuracy: LocationAccuracy = LocationAccuracy.HIGH
    shows_background_indicator: bool = True
    indicator_title: str = "Delivery tracking active"
    indicator_body: str = "Your location is shared while a delivery is in transit."
    pauses_updates_automatically: bool = False

    def __post_init__(self) -> None:
        if self.time_interval_ms < 0:
            raise LocSyncConfigError(f"time_interval_ms must be >= 0, got {self.time_interval_ms}")
        if self.distance_interval_m < 0:
            raise LocSyncConfigError(f"distance_interval_m must be >= 0, got {self.distance_interval_m}")


@dataclasses.dataclass(frozen=True)
class LocSyncConfig:
    """Library configuration.

    Parameters
    ----------
    supabase_url : str
        Base URL of the Supabase project (``https://<ref>.supabase.co``).
    supabase_anon_key : str
        Public anon key sent as ``apikey`` with every request.
    table : str
        Table holding delivery records.
    identity_column : str
        Column tying a record to the courier identity.
    status_column : str
        Column holding the delivery status code.
    in_transit_status : int
        Status code meaning "in transit".  Only matching records are written.
    geocoder_url : str
        Base URL of a Nominatim-compatible reverse geocoding service.
    geocode_timeout : float or None
        Seconds to wait for a reverse geocode before falling back to
        coordinates.  ``None`` leaves timing to the network stack.
    task_name : str
        Name the capture task is registered under.
    update_options : UpdateOptions
        Registration parameters for the capture task.
    """

    supabase_url: str = ""
    supabase_anon_key: str = ""
    table: str = DEFAULT_TABLE
    identity_column: str = DEFAULT_IDENTITY_COLUMN
    status_column: str = DEFAULT_STATUS_COLUMN
    in_transit_status: int = IN_TRANSIT_STATUS
    geocoder_url: str = DEFAULT_GEOCODER_URL
    geocode_timeout: float | None = None
    task_name: str = TASK_NAME
    update_options: UpdateOptions = dataclasses.field(default_factory=UpdateOptions)

    def require_remote(self) -> None:
        """Raise :class:`LocSyncConfigError` unless the remote store is configured."""
        if not self.supabase_url or not self.supabase_anon_key:
            raise LocSyncConfigError(
                "Missing Supabase settings: set LOCSYNC_SUPABASE_URL and LOCSYNC_SUPABASE_ANON_KEY"
            )

    @property
    def rest_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/rest/v1"

    @property
    def auth_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/auth/v1"

    @classmethod
    def from_env(cls, **overrides: Any) -> LocSyncConfig:
        """Create configuration from ``LOCSYNC_*`` environment variables.

        Explicit keyword arguments override environment values.  An
        ``update_options`` override may be an :class:`UpdateOptions` or a
        dict of its fields.
        """
        env = os.environ

        options_kwargs: dict[str, Any] = {}
        interval_env = env.get("LOCSYNC_TIME_INTERVAL_MS")
        if interval_env is not None:
            options_kwargs["time_interval_ms"] = int(interval_env)
        distance_env = env.get("LOCSYNC_DISTANCE_INTERVAL_M")
        if distance_env is not None:
            options_kwargs["distance_interval_m"] = float(distance_env)
        options_kwargs["shows_background_indicator"] = _env_bool(env.get("LOCSYNC_SHOWS_INDICATOR"), True)
        options_kwargs["pauses_updates_automatically"] = _env_bool(env.get("LOCSYNC_PAUSES_AUTOMATICALLY"), False)

        options_override = overrides.pop("update_options", None)
        if isinstance(options_override, dict):
            options_kwargs.update(options_override)
        elif isinstance(options_override, UpdateOptions):
            options_kwargs = dataclasses.asdict(options_override)

        _ENV_CONFIG_MAP = {
            "LOCSYNC_SUPABASE_URL": "supabase_url",
            "LOCSYNC_SUPABASE_ANON_KEY": "supabase_anon_key",
            "LOCSYNC_TABLE": "table",
            "LOCSYNC_IDENTITY_COLUMN": "identity_column",
            "LOCSYNC_STATUS_COLUMN": "status_column",
            "LOCSYNC_GEOCODER_URL": "geocoder_url",
            "LOCSYNC_TASK_NAME": "task_name",
        }
        config_kwargs: dict[str, Any] = {"update_options": UpdateOptions(**options_kwargs)}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        status_env = env.get("LOCSYNC_IN_TRANSIT_STATUS")
        if status_env is not None and "in_transit_status" not in overrides:
            config_kwargs["in_transit_status"] = int(status_env)

        timeout_env = env.get("LOCSYNC_GEOCODE_TIMEOUT")
        if timeout_env is not None and "geocode_timeout" not in overrides:
            config_kwargs["geocode_timeout"] = float(timeout_env)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
