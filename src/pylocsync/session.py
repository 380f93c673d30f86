"""Stored authentication session for the remote store."""

from __future__ import annotations

import time
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

#: Refresh this many seconds before the access token actually expires.
EXPIRY_LEEWAY: float = 30.0


class AuthSession(BaseModel):
    """Tokens of the signed-in courier.

    Parameters
    ----------
    access_token : str
        Bearer token sent with identity lookups and record writes.
    refresh_token : str or None
        Token used to obtain a new access token once it expires.
    expires_at : float or None
        Epoch seconds after which the access token is rejected.
        ``None`` means the expiry is unknown and the token is used
        until the server refuses it.
    user_id : str or None
        Identity id cached from the last successful lookup.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    access_token: str = Field(min_length=1)
    refresh_token: str | None = None
    expires_at: float | None = None
    user_id: str | None = None

    @property
    def is_expired(self) -> bool:
        """Whether the access token is past (or within leeway of) its expiry."""
        if self.expires_at is None:
            return False
        return time.time() >= self.expires_at - EXPIRY_LEEWAY

    @classmethod
    def from_token_response(cls, data: dict[str, Any]) -> AuthSession:
        """Build a session from a GoTrue ``/token`` response body."""
        expires_at = data.get("expires_at")
        if expires_at is None and data.get("expires_in") is not None:
            expires_at = time.time() + float(data["expires_in"])
        user = data.get("user")
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_at=float(expires_at) if expires_at is not None else None,
            user_id=user.get("id") if isinstance(user, dict) else None,
        )


class SessionStore(Protocol):
    """Where the host app persists the signed-in session."""

    async def load(self) -> AuthSession | None:
        ...

    async def save(self, session: AuthSession) -> None:
        ...

    async def clear(self) -> None:
        ...


class MemorySessionStore:
    """Process-local :class:`SessionStore`."""

    def __init__(self, session: AuthSession | None = None) -> None:
        self._session = session

    async def load(self) -> AuthSession | None:
        return self._session

    async def save(self, session: AuthSession) -> None:
        self._session = session

    async def clear(self) -> None:
        self._session = None
