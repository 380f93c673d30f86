from __future__ import annotations

import pytest

from pylocsync.exceptions import PermissionDeniedError
from pylocsync.permissions import Capability, PermissionGate, PermissionScope, PermissionStatus

from conftest import FakePermissions


@pytest.mark.asyncio
async def test_both_scopes_granted_returns_capability(permissions: FakePermissions) -> None:
    capability = await PermissionGate(permissions).ensure_capability()

    assert isinstance(capability, Capability)
    assert capability.scopes == {PermissionScope.FOREGROUND, PermissionScope.BACKGROUND}
    assert permissions.calls == ["get_foreground_status", "request_foreground", "request_background"]


@pytest.mark.asyncio
async def test_foreground_denial_never_requests_background() -> None:
    permissions = FakePermissions(foreground=PermissionStatus.DENIED, can_ask_again=False)

    with pytest.raises(PermissionDeniedError) as exc_info:
        await PermissionGate(permissions).ensure_capability()

    assert exc_info.value.scope is PermissionScope.FOREGROUND
    assert exc_info.value.can_ask_again is False
    assert "request_background" not in permissions.calls


@pytest.mark.asyncio
async def test_background_denial_is_fatal() -> None:
    permissions = FakePermissions(background=PermissionStatus.DENIED)

    with pytest.raises(PermissionDeniedError) as exc_info:
        await PermissionGate(permissions).ensure_capability()

    assert exc_info.value.scope is PermissionScope.BACKGROUND


@pytest.mark.asyncio
async def test_already_granted_foreground_is_not_prompted_again() -> None:
    permissions = FakePermissions(already_granted=True)

    await PermissionGate(permissions).ensure_capability()

    assert permissions.calls == ["get_foreground_status", "request_background"]
