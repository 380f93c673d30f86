"""Resolve the authenticated courier identity.

Fixes are only meaningful when tied to a signed-in courier.  Without an
identity the pipeline drops the fix; nothing is queued for later.
"""

from __future__ import annotations

import logging
from typing import Protocol

from pylocsync._transport import Transport
from pylocsync.config import LocSyncConfig
from pylocsync.exceptions import LocSyncApiError, LocSyncTransportError, UnauthenticatedError
from pylocsync.session import AuthSession, SessionStore

_logger = logging.getLogger(__name__)

_UNAUTHORIZED_STATUSES: frozenset[int] = frozenset({401, 403})


class IdentityResolver(Protocol):
    """Return the current identity id or raise :class:`UnauthenticatedError`."""

    async def current_identity(self) -> str:
        ...


def _is_unauthorized(exc: LocSyncApiError | LocSyncTransportError) -> bool:
    return exc.status_code in _UNAUTHORIZED_STATUSES


class SupabaseIdentityResolver:
    """Look up the signed-in user through the GoTrue ``/user`` endpoint.

    Expired access tokens are refreshed once with the stored refresh
    token; the refreshed session is written back to the store.
    """

    def __init__(self, config: LocSyncConfig, transport: Transport, store: SessionStore) -> None:
        self._config = config
        self._transport = transport
        self._store = store

    async def _refresh(self, session: AuthSession) -> AuthSession:
        if not session.refresh_token:
            await self._store.clear()
            raise UnauthenticatedError("Session expired and no refresh token is stored")
        try:
            response = await self._transport.request(
                "POST",
                f"{self._config.auth_url}/token",
                params={"grant_type": "refresh_token"},
                json_body={"refresh_token": session.refresh_token},
            )
        except (LocSyncApiError, LocSyncTransportError) as exc:
            if _is_unauthorized(exc) or exc.status_code == 400:
                await self._store.clear()
                raise UnauthenticatedError(f"Refresh token rejected: {exc}") from exc
            raise
        if not isinstance(response.body, dict) or "access_token" not in response.body:
            raise UnauthenticatedError("Token refresh returned no access token")
        refreshed = AuthSession.from_token_response(response.body)
        await self._store.save(refreshed)
        _logger.debug("Access token refreshed")
        return refreshed

    async def _fetch_user_id(self, session: AuthSession) -> str:
        response = await self._transport.request(
            "GET",
            f"{self._config.auth_url}/user",
            headers={"authorization": f"Bearer {session.access_token}"},
        )
        body = response.body
        user_id = body.get("id") if isinstance(body, dict) else None
        if not user_id:
            raise UnauthenticatedError("Auth server returned no user")
        return str(user_id)

    async def current_identity(self) -> str:
        """Return the signed-in user's id.

        Raises
        ------
        UnauthenticatedError
            No stored session, or the server no longer accepts it.
        LocSyncTransportError
            The auth server could not be reached.
        """
        session = await self._store.load()
        if session is None:
            raise UnauthenticatedError("No stored session")
        if session.is_expired:
            session = await self._refresh(session)

        try:
            return await self._fetch_user_id(session)
        except (LocSyncApiError, LocSyncTransportError) as exc:
            if not _is_unauthorized(exc):
                raise
            if session.refresh_token is None:
                raise UnauthenticatedError(f"Session rejected: {exc}") from exc
            _logger.debug("Access token rejected; refreshing once")
        session = await self._refresh(session)
        try:
            return await self._fetch_user_id(session)
        except (LocSyncApiError, LocSyncTransportError) as exc:
            if _is_unauthorized(exc):
                raise UnauthenticatedError(f"Session rejected after refresh: {exc}") from exc
            raise


class SessionAuthenticator:
    """Thin seam between the pipeline and the injected identity resolver."""

    def __init__(self, resolver: IdentityResolver) -> None:
        self._resolver = resolver

    async def current_identity(self) -> str:
        identity = await self._resolver.current_identity()
        if not identity:
            raise UnauthenticatedError("Identity resolver returned an empty identity")
        return identity
