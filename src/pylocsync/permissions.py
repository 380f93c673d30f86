"""Positioning permission gate.

Foreground positioning is requested first; background positioning is
only requested once foreground has been granted.  Both must be granted
before the capture task may be registered.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

from pylocsync.exceptions import PermissionDeniedError

_logger = logging.getLogger(__name__)


class PermissionScope(StrEnum):
    FOREGROUND = "foreground"
    BACKGROUND = "background"


class PermissionStatus(StrEnum):
    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"


@dataclass(frozen=True, slots=True)
class PermissionResponse:
    """Answer from the platform for one permission scope."""

    status: PermissionStatus
    can_ask_again: bool = True

    @property
    def granted(self) -> bool:
        return self.status is PermissionStatus.GRANTED


class PermissionProvider(Protocol):
    """Platform permission API.  ``request_*`` calls may prompt the user."""

    async def get_foreground_status(self) -> PermissionResponse:
        ...

    async def request_foreground(self) -> PermissionResponse:
        ...

    async def request_background(self) -> PermissionResponse:
        ...


@dataclass(frozen=True, slots=True)
class Capability:
    """Evidence that both positioning scopes were granted."""

    scopes: frozenset[PermissionScope] = frozenset({PermissionScope.FOREGROUND, PermissionScope.BACKGROUND})
    granted_at: float = field(default_factory=time.time)


class PermissionGate:
    """Acquire the capability to read device position in the background."""

    def __init__(self, provider: PermissionProvider) -> None:
        self._provider = provider

    async def ensure_capability(self) -> Capability:
        """Return a :class:`Capability`, prompting the user where needed.

        Raises
        ------
        PermissionDeniedError
            If either scope is denied.  ``scope`` names the denied scope.
            Background is never requested after a foreground denial.
        """
        current = await self._provider.get_foreground_status()
        if current.granted:
            foreground = current
        else:
            _logger.debug("Requesting foreground location permission")
            foreground = await self._provider.request_foreground()
        if not foreground.granted:
            _logger.warning(
                "Foreground location permission denied (status=%s, can_ask_again=%s)",
                foreground.status,
                foreground.can_ask_again,
            )
            raise PermissionDeniedError(
                "Foreground location permission was not granted",
                scope=PermissionScope.FOREGROUND,
                can_ask_again=foreground.can_ask_again,
            )

        _logger.debug("Requesting background location permission")
        background = await self._provider.request_background()
        if not background.granted:
            _logger.warning(
                "Background location permission denied (status=%s, can_ask_again=%s)",
                background.status,
                background.can_ask_again,
            )
            raise PermissionDeniedError(
                "Background location permission was not granted",
                scope=PermissionScope.BACKGROUND,
                can_ask_again=background.can_ask_again,
            )

        return Capability()
