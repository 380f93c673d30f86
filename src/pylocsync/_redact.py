"""Mask credentials before request and response payloads hit DEBUG logs.

Every Supabase request carries the project key twice (``apikey`` and the
bearer header) and auth replies echo fresh tokens.  Fixes themselves are
not masked: the current location is the payload being debugged.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

REDACTED = "<redacted>"
_MAX_DEPTH = 20

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "apikey",
        "authorization",
        "access_token",
        "accesstoken",
        "refresh_token",
        "refreshtoken",
        "provider_token",
        "provider_refresh_token",
        "token",
        "password",
        "cookie",
        "set-cookie",
    }
)


def _is_sensitive(key: Any) -> bool:
    return str(key).lower() in _SENSITIVE_KEYS


def _clip(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}…<truncated>"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Copy *value* with credential fields masked and long strings clipped.

    Mappings, sequences and pydantic models are walked; bytes are
    reduced to their length and unknown objects to their ``repr``.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return _clip(value, max_string)
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, BaseModel):
        value = value.model_dump()

    def walk(item: Any) -> Any:
        return redact_for_log(item, max_string=max_string, _depth=_depth + 1)

    if isinstance(value, Mapping):
        return {str(k): REDACTED if _is_sensitive(k) else walk(v) for k, v in value.items()}
    if isinstance(value, Sequence):
        return [walk(item) for item in value]
    return _clip(repr(value), max_string)
