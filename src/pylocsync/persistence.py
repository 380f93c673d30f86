"""Write the latest fix to the remote "current location" record.

Writes are unconditional overwrites of the single in-transit record of
the identity.  A failed write is logged and dropped; the next fix is the
retry.
"""

from __future__ import annotations

import logging
from typing import Protocol

from pylocsync._transport import Transport
from pylocsync.config import LocSyncConfig
from pylocsync.exceptions import LocSyncApiError, LocSyncError, RemoteNotFoundError
from pylocsync.models.address import ResolvedAddress
from pylocsync.models.sample import LocationSample
from pylocsync.models.sync import SyncRecord, SyncTarget
from pylocsync.models.tracking import PersistResult
from pylocsync.session import SessionStore

_logger = logging.getLogger(__name__)


class RecordWriter(Protocol):
    """Remote store operations on delivery records."""

    async def update_current_location(self, target: SyncTarget, record: SyncRecord) -> None:
        """Overwrite the matched record.  Raise :class:`RemoteNotFoundError` if none matched."""
        ...

    async def count_matching(self, target: SyncTarget) -> int:
        ...


def _parse_content_range(value: str | None) -> int | None:
    """Total from a PostgREST ``Content-Range`` header (``0-0/3``, ``*/0``)."""
    if not value or "/" not in value:
        return None
    total = value.rsplit("/", 1)[1].strip()
    if total == "*":
        return None
    try:
        return int(total)
    except ValueError:
        return None


class PostgrestRecordWriter:
    """:class:`RecordWriter` over the Supabase PostgREST API.

    Requests carry the signed-in user's access token when one is stored
    so that row-level security applies; otherwise the anon key is used.
    """

    def __init__(self, config: LocSyncConfig, transport: Transport, store: SessionStore | None = None) -> None:
        self._config = config
        self._transport = transport
        self._store = store

    @property
    def _table_url(self) -> str:
        return f"{self._config.rest_url}/{self._config.table}"

    def _filters(self, target: SyncTarget) -> dict[str, str]:
        return {
            self._config.identity_column: f"eq.{target.identity_id}",
            self._config.status_column: f"eq.{target.active_status_code}",
        }

    async def _headers(self, prefer: str) -> dict[str, str]:
        headers = {"prefer": prefer}
        if self._store is not None:
            session = await self._store.load()
            if session is not None:
                headers["authorization"] = f"Bearer {session.access_token}"
        return headers

    async def update_current_location(self, target: SyncTarget, record: SyncRecord) -> None:
        response = await self._transport.request(
            "PATCH",
            self._table_url,
            params=self._filters(target),
            json_body=record.to_row(),
            headers=await self._headers("return=representation"),
        )
        body = response.body
        if isinstance(body, dict) and ("code" in body or "message" in body):
            raise LocSyncApiError(
                f"Update of {self._config.table} failed: {body.get('message', '')}",
                code=str(body.get("code", "")),
                endpoint=self._table_url,
            )
        matched = len(body) if isinstance(body, list) else 0
        if matched == 0:
            raise RemoteNotFoundError(
                f"No {self._config.table} row with {self._config.identity_column}={target.identity_id} "
                f"and {self._config.status_column}={target.active_status_code}"
            )
        _logger.debug("Updated %d %s row(s) for %s", matched, self._config.table, target.identity_id)

    async def count_matching(self, target: SyncTarget) -> int:
        params = self._filters(target)
        params["select"] = "*"
        response = await self._transport.request(
            "HEAD",
            self._table_url,
            params=params,
            headers=await self._headers("count=exact"),
        )
        total = _parse_content_range(response.headers.get("content-range"))
        if total is None:
            raise LocSyncApiError(
                f"Count of {self._config.table} returned no usable Content-Range header",
                endpoint=self._table_url,
            )
        return total


class SyncPersister:
    """Persist resolved fixes for an identity.  :meth:`persist` never raises."""

    def __init__(self, writer: RecordWriter, *, active_status_code: int) -> None:
        self._writer = writer
        self._active_status_code = active_status_code

    def target_for(self, identity_id: str) -> SyncTarget:
        return SyncTarget(identity_id=identity_id, active_status_code=self._active_status_code)

    async def persist(
        self,
        identity_id: str,
        resolved: ResolvedAddress,
        sample: LocationSample,
    ) -> PersistResult:
        target = self.target_for(identity_id)
        record = SyncRecord.from_fix(resolved, sample)
        try:
            await self._writer.update_current_location(target, record)
        except RemoteNotFoundError as exc:
            _logger.info("No in-transit delivery to update: %s", exc)
            return PersistResult.NOT_FOUND
        except LocSyncError as exc:
            _logger.error("Failed to update current location: %s", exc)
            return PersistResult.REMOTE_ERROR
        except Exception:
            _logger.exception("Unexpected error while updating current location")
            return PersistResult.REMOTE_ERROR
        _logger.info("Current location updated: %s", record.current_location_text)
        return PersistResult.PERSISTED

    async def count_active(self, identity_id: str) -> int:
        """Number of in-transit records for *identity_id*.  Errors propagate."""
        return await self._writer.count_matching(self.target_for(identity_id))
