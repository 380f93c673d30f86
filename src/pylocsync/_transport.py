"""HTTP transport for the Supabase REST and auth endpoints."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import aiohttp

from pylocsync._constants import USER_AGENT
from pylocsync._redact import redact_for_log
from pylocsync.config import LocSyncConfig
from pylocsync.exceptions import LocSyncApiError, LocSyncTransportError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RestResponse:
    """Decoded HTTP response.  ``body`` is ``None`` for empty replies."""

    status: int
    body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)


class Transport(Protocol):
    """Structural transport interface used by the remote adapters.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`RestTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> RestResponse:
        ...


def _error_message(body: Any, text: str) -> tuple[str, str]:
    """Extract ``(code, message)`` from a PostgREST / GoTrue error body."""
    if isinstance(body, dict):
        code = body.get("code") or body.get("error_code") or body.get("error") or ""
        message = body.get("message") or body.get("msg") or body.get("error_description") or ""
        return str(code), str(message)
    return "", text[:200]


class RestTransport:
    """JSON-over-HTTP transport that adds the project API key to every request."""

    def __init__(self, config: LocSyncConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    def _base_headers(self) -> dict[str, str]:
        return {
            "accept": "application/json",
            "apikey": self._config.supabase_anon_key,
            "authorization": f"Bearer {self._config.supabase_anon_key}",
            "user-agent": USER_AGENT,
        }

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> RestResponse:
        """Send a request and decode the JSON reply.

        Non-2xx replies raise :class:`LocSyncApiError` when the body
        carries a structured error, :class:`LocSyncTransportError`
        otherwise.  Network failures always raise
        :class:`LocSyncTransportError`.
        """
        merged = self._base_headers()
        if headers:
            merged.update({k.lower(): v for k, v in headers.items()})
        if json_body is not None:
            merged["content-type"] = "application/json"

        _logger.debug(
            "%s %s params=%s headers=%s body=%s",
            method,
            url,
            redact_for_log(dict(params or {})),
            redact_for_log(merged),
            redact_for_log(json_body),
        )

        data = json.dumps(json_body, separators=(",", ":")) if json_body is not None else None
        try:
            async with self._http.request(method, url, params=params, data=data, headers=merged) as resp:
                text = await resp.text()
                status = resp.status
                resp_headers = {k.lower(): v for k, v in resp.headers.items()}
        except aiohttp.ClientError as exc:
            raise LocSyncTransportError(f"{method} {url} failed: {exc}", endpoint=url) from exc

        body: Any = None
        if text.strip():
            try:
                body = json.loads(text)
            except json.JSONDecodeError as exc:
                if 200 <= status < 300:
                    raise LocSyncTransportError(
                        f"Invalid JSON from {url}: {text[:200]}",
                        status_code=status,
                        endpoint=url,
                    ) from exc

        if not 200 <= status < 300:
            code, message = _error_message(body, text)
            if isinstance(body, dict) and (code or message):
                raise LocSyncApiError(
                    f"HTTP {status} from {url}: code={code} message={message}",
                    code=code,
                    endpoint=url,
                    status_code=status,
                )
            raise LocSyncTransportError(
                f"HTTP {status} from {url}: {text[:200]}",
                status_code=status,
                endpoint=url,
            )

        _logger.debug("%s %s -> %d %s", method, url, status, redact_for_log(body))
        return RestResponse(status=status, body=body, headers=resp_headers)
