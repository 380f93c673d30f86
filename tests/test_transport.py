from __future__ import annotations

from typing import Any

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from pylocsync._transport import RestTransport
from pylocsync.config import LocSyncConfig
from pylocsync.exceptions import LocSyncApiError, LocSyncTransportError


async def _serve(routes: list[web.RouteDef]) -> TestServer:
    app = web.Application()
    app.add_routes(routes)
    server = TestServer(app)
    await server.start_server()
    return server


def _config(server: TestServer) -> LocSyncConfig:
    return LocSyncConfig(supabase_url=str(server.make_url("/")), supabase_anon_key="anon-key")


@pytest.mark.asyncio
async def test_request_sends_key_and_decodes_json() -> None:
    seen: dict[str, Any] = {}

    async def patch(request: web.Request) -> web.Response:
        seen["headers"] = request.headers.copy()
        seen["query"] = dict(request.query)
        seen["json"] = await request.json()
        return web.json_response([{"id": 7}], headers={"Content-Range": "0-0/1"})

    server = await _serve([web.patch("/rest/v1/contract", patch)])
    try:
        async with aiohttp.ClientSession() as http:
            transport = RestTransport(_config(server), http)
            response = await transport.request(
                "PATCH",
                str(server.make_url("/rest/v1/contract")),
                params={"delivery_id": "eq.c-1"},
                json_body={"current_location": "Main St"},
                headers={"Authorization": "Bearer user-jwt"},
            )
    finally:
        await server.close()

    assert response.status == 200
    assert response.body == [{"id": 7}]
    assert response.headers["content-range"] == "0-0/1"
    assert seen["headers"]["apikey"] == "anon-key"
    assert seen["headers"]["Authorization"] == "Bearer user-jwt"
    assert seen["query"] == {"delivery_id": "eq.c-1"}
    assert seen["json"] == {"current_location": "Main St"}


@pytest.mark.asyncio
async def test_structured_error_raises_api_error() -> None:
    async def user(_request: web.Request) -> web.Response:
        return web.json_response({"code": 401, "error_code": "bad_jwt", "msg": "invalid JWT"}, status=401)

    server = await _serve([web.get("/auth/v1/user", user)])
    try:
        async with aiohttp.ClientSession() as http:
            transport = RestTransport(_config(server), http)
            with pytest.raises(LocSyncApiError) as excinfo:
                await transport.request("GET", str(server.make_url("/auth/v1/user")))
    finally:
        await server.close()

    assert excinfo.value.status_code == 401
    assert "invalid JWT" in str(excinfo.value)


@pytest.mark.asyncio
async def test_plain_error_raises_transport_error() -> None:
    async def busy(_request: web.Request) -> web.Response:
        return web.Response(status=502, text="Bad Gateway")

    server = await _serve([web.get("/rest/v1/contract", busy)])
    try:
        async with aiohttp.ClientSession() as http:
            transport = RestTransport(_config(server), http)
            with pytest.raises(LocSyncTransportError) as excinfo:
                await transport.request("GET", str(server.make_url("/rest/v1/contract")))
    finally:
        await server.close()

    assert excinfo.value.status_code == 502


@pytest.mark.asyncio
async def test_unreachable_host_raises_transport_error() -> None:
    config = LocSyncConfig(supabase_url="http://127.0.0.1:9", supabase_anon_key="anon-key")
    async with aiohttp.ClientSession() as http:
        with pytest.raises(LocSyncTransportError):
            await RestTransport(config, http).request("GET", "http://127.0.0.1:9/rest/v1/contract")
