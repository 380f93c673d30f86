from __future__ import annotations

import asyncio

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from pylocsync.exceptions import GeocodeError
from pylocsync.geocoding import AddressResolver, NominatimGeocoder, compose_address, parse_nominatim_address
from pylocsync.models.address import AddressSource, GeocodedAddress
from pylocsync.models.sample import LocationSample

from conftest import FakeGeocoder


def _sample(lat: float = 14.5, lng: float = 121.0) -> LocationSample:
    return LocationSample(latitude=lat, longitude=lng)


def test_compose_full_address_in_policy_order() -> None:
    candidate = GeocodedAddress(
        street_number="12",
        street="Main St",
        city="Pasay",
        region="NCR",
        postal_code="1300",
        country="PH",
        district="Barangay 76",
        subregion="Fourth District",
    )

    assert compose_address(candidate) == "12 Main St, Pasay, NCR, 1300, PH, Barangay 76, Fourth District"


def test_compose_skips_street_number_without_street() -> None:
    assert compose_address(GeocodedAddress(street_number="12", city="Pasay")) == "Pasay"


def test_compose_partial_groups() -> None:
    assert compose_address(GeocodedAddress(region="NCR", country="PH")) == "NCR, PH"
    assert compose_address(GeocodedAddress()) == ""


@pytest.mark.asyncio
async def test_resolve_uses_first_candidate(geocoder: FakeGeocoder) -> None:
    geocoder.candidates.append(GeocodedAddress(street="Other Rd"))

    resolved = await AddressResolver(geocoder).resolve(_sample())

    assert resolved.text == "Main St, Pasay, NCR, PH"
    assert resolved.source is AddressSource.GEOCODED
    assert geocoder.calls == [(14.5, 121.0)]


@pytest.mark.asyncio
async def test_resolve_accepts_mapping_candidates() -> None:
    geocoder = FakeGeocoder(candidates=[{"streetNumber": "5", "street": "Taft Ave", "city": "Manila"}])

    resolved = await AddressResolver(geocoder).resolve(_sample())

    assert resolved.text == "5 Taft Ave, Manila"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "geocoder",
    [
        FakeGeocoder(error=RuntimeError("geocoder offline")),
        FakeGeocoder(error=GeocodeError("HTTP 503")),
        FakeGeocoder(candidates=[]),
        FakeGeocoder(candidates=[GeocodedAddress()]),
    ],
)
async def test_resolve_falls_back_to_coordinates(geocoder: FakeGeocoder) -> None:
    resolved = await AddressResolver(geocoder).resolve(_sample(14.5, 121.0))

    assert resolved.text == "14.5,121"
    assert resolved.source is AddressSource.RAW_COORDINATES


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "candidate",
    [
        {"street": ["Main St"]},
        {"city": {"name": "Pasay"}},
        "Main St, Pasay",
        None,
    ],
)
async def test_resolve_falls_back_on_malformed_candidate(candidate: object) -> None:
    geocoder = FakeGeocoder(candidates=[candidate])  # type: ignore[list-item]

    resolved = await AddressResolver(geocoder).resolve(_sample(14.5, 121.0))

    assert resolved.text == "14.5,121"
    assert resolved.source is AddressSource.RAW_COORDINATES


@pytest.mark.asyncio
async def test_resolve_falls_back_on_timeout() -> None:
    geocoder = FakeGeocoder(candidates=[GeocodedAddress(street="Main St")], delay=1.0)

    resolved = await AddressResolver(geocoder, timeout=0.01).resolve(_sample(1.25, 2.5))

    assert resolved.text == "1.25,2.5"
    assert resolved.source is AddressSource.RAW_COORDINATES


def test_parse_nominatim_address_maps_fields() -> None:
    candidate = parse_nominatim_address(
        {
            "house_number": "12",
            "road": "Main St",
            "town": "Pasay",
            "state": "Metro Manila",
            "postcode": "1300",
            "country": "Philippines",
            "suburb": "Barangay 76",
            "county": "Fourth District",
            "country_code": "ph",
        }
    )

    assert candidate.street_number == "12"
    assert candidate.street == "Main St"
    assert candidate.city == "Pasay"
    assert candidate.region == "Metro Manila"
    assert candidate.postal_code == "1300"
    assert candidate.country == "Philippines"
    assert candidate.district == "Barangay 76"
    assert candidate.subregion == "Fourth District"
    assert candidate.raw["country_code"] == "ph"


async def _nominatim_app(handler: object) -> TestServer:
    app = web.Application()
    app.router.add_get("/reverse", handler)  # type: ignore[arg-type]
    server = TestServer(app)
    await server.start_server()
    return server


@pytest.mark.asyncio
async def test_nominatim_geocoder_returns_one_candidate() -> None:
    seen: dict[str, str] = {}

    async def reverse(request: web.Request) -> web.Response:
        seen.update(request.query)
        return web.json_response({"address": {"road": "Main St", "city": "Pasay", "country": "Philippines"}})

    server = await _nominatim_app(reverse)
    try:
        async with aiohttp.ClientSession() as http:
            geocoder = NominatimGeocoder(http, base_url=f"http://{server.host}:{server.port}/")
            candidates = await geocoder.reverse_geocode(14.5, 121.0)
    finally:
        await server.close()

    assert seen["lat"] == "14.5"
    assert seen["lon"] == "121.0"
    assert seen["format"] == "jsonv2"
    assert len(candidates) == 1
    assert compose_address(candidates[0]) == "Main St, Pasay, Philippines"


@pytest.mark.asyncio
async def test_nominatim_geocoder_miss_is_empty() -> None:
    async def reverse(_request: web.Request) -> web.Response:
        return web.json_response({"error": "Unable to geocode"})

    server = await _nominatim_app(reverse)
    try:
        async with aiohttp.ClientSession() as http:
            geocoder = NominatimGeocoder(http, base_url=f"http://{server.host}:{server.port}")
            assert await geocoder.reverse_geocode(0.0, 0.0) == []
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_nominatim_geocoder_http_error_raises() -> None:
    async def reverse(_request: web.Request) -> web.Response:
        return web.Response(status=503, text="busy")

    server = await _nominatim_app(reverse)
    try:
        async with aiohttp.ClientSession() as http:
            geocoder = NominatimGeocoder(http, base_url=f"http://{server.host}:{server.port}")
            with pytest.raises(GeocodeError):
                await geocoder.reverse_geocode(14.5, 121.0)
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_resolver_over_failing_nominatim_falls_back() -> None:
    async with aiohttp.ClientSession() as http:
        # Nothing listens on port 9; the connection error becomes a fallback.
        geocoder = NominatimGeocoder(http, base_url="http://127.0.0.1:9")
        resolved = await asyncio.wait_for(AddressResolver(geocoder).resolve(_sample()), timeout=10)

    assert resolved.source is AddressSource.RAW_COORDINATES
