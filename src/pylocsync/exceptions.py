"""Custom exception hierarchy for pylocsync."""

from __future__ import annotations

from typing import Any


class LocSyncError(Exception):
    """Base exception for all pylocsync errors."""


class LocSyncConfigError(LocSyncError):
    """Invalid or missing configuration."""


class LocSyncTransportError(LocSyncError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class LocSyncApiError(LocSyncError):
    """Remote store returned an application-level error body."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
        status_code: int | None = None,
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(message)


class PermissionDeniedError(LocSyncError):
    """A positioning permission scope was not granted.

    Fatal to the current start attempt only.  The caller decides whether
    to prompt again on the next explicit start.
    """

    def __init__(self, message: str, *, scope: Any = None, can_ask_again: bool = True) -> None:
        self.scope = scope
        self.can_ask_again = can_ask_again
        super().__init__(message)


class RegistrationError(LocSyncError):
    """The scheduler refused or failed to (de)register the capture task."""


class GeocodeError(LocSyncError):
    """Reverse geocoding failed.  Recovered by falling back to coordinates."""


class UnauthenticatedError(LocSyncError):
    """No authenticated identity is available for the current session."""


class RemoteNotFoundError(LocSyncError):
    """No remote record matched the identity and in-transit status."""


class DeliveryBatchError(LocSyncError):
    """The scheduler delivered an invocation carrying an error instead of fixes."""

    def __init__(self, message: str, *, cause: Any = None) -> None:
        self.cause = cause
        super().__init__(message)
