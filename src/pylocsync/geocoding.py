"""Reverse geocoding: coordinates to a human-readable address.

Only the first candidate of a lookup is used.  Address text is composed
from that candidate in a fixed order, skipping absent fields:

1. street, prefixed with the street number
2. city, region
3. postal code, country
4. district
5. subregion

Any failure (error, timeout, empty result) falls back to
``"<latitude>,<longitude>"`` and never propagates.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import aiohttp
from pydantic import ValidationError

from pylocsync._constants import DEFAULT_GEOCODER_URL, USER_AGENT, coordinate_text
from pylocsync.exceptions import GeocodeError
from pylocsync.models.address import AddressSource, GeocodedAddress, ResolvedAddress
from pylocsync.models.sample import LocationSample

_logger = logging.getLogger(__name__)


class Geocoder(Protocol):
    """Reverse geocoding backend returning ranked candidates, best first."""

    async def reverse_geocode(
        self, latitude: float, longitude: float
    ) -> Sequence[GeocodedAddress | Mapping[str, Any]]:
        ...


def _join(parts: Sequence[str | None], sep: str) -> str:
    return sep.join(part for part in parts if part)


def compose_address(candidate: GeocodedAddress) -> str:
    """Compose display text from a geocode candidate (empty if nothing usable)."""
    components: list[str] = []
    if candidate.street:
        components.append(_join((candidate.street_number, candidate.street), " "))
    city_region = _join((candidate.city, candidate.region), ", ")
    if city_region:
        components.append(city_region)
    postal_country = _join((candidate.postal_code, candidate.country), ", ")
    if postal_country:
        components.append(postal_country)
    if candidate.district:
        components.append(candidate.district)
    if candidate.subregion:
        components.append(candidate.subregion)
    return ", ".join(components)


def _as_candidate(candidate: Any) -> GeocodedAddress:
    if isinstance(candidate, GeocodedAddress):
        return candidate
    if not isinstance(candidate, Mapping):
        raise GeocodeError(f"Unexpected geocode candidate type {type(candidate).__name__}")
    return GeocodedAddress.model_validate(dict(candidate))


class AddressResolver:
    """Resolve a fix to a :class:`ResolvedAddress`.

    Parameters
    ----------
    geocoder : Geocoder
        Reverse geocoding backend.
    timeout : float or None
        Seconds to wait for the lookup.  ``None`` leaves timing to the
        backend's network stack.
    """

    def __init__(self, geocoder: Geocoder, *, timeout: float | None = None) -> None:
        self._geocoder = geocoder
        self._timeout = timeout

    async def _lookup(self, sample: LocationSample) -> Sequence[GeocodedAddress | Mapping[str, Any]]:
        lookup = self._geocoder.reverse_geocode(sample.latitude, sample.longitude)
        if self._timeout is None:
            return await lookup
        return await asyncio.wait_for(lookup, timeout=self._timeout)

    async def resolve(self, sample: LocationSample) -> ResolvedAddress:
        fallback = ResolvedAddress(
            text=coordinate_text(sample.latitude, sample.longitude),
            source=AddressSource.RAW_COORDINATES,
        )
        try:
            candidates = await self._lookup(sample)
            if not candidates:
                _logger.debug("Reverse geocoding returned no candidates for %s", fallback.text)
                return fallback
            text = compose_address(_as_candidate(candidates[0]))
        except TimeoutError:
            _logger.warning("Reverse geocoding timed out after %ss; using coordinates", self._timeout)
            return fallback
        except ValidationError as exc:
            _logger.warning("Unusable geocode candidate; using coordinates: %s", exc.errors(include_url=False))
            return fallback
        except Exception as exc:
            _logger.warning("Reverse geocoding failed; using coordinates: %s", exc)
            return fallback

        if not text:
            return fallback
        _logger.debug("Formatted address: %s", text)
        return ResolvedAddress(text=text, source=AddressSource.GEOCODED)


# ----------------------------------------------------------------------
# Nominatim backend
# ----------------------------------------------------------------------

# Nominatim address keys tried in order for each candidate field.
_NOMINATIM_FIELDS: dict[str, tuple[str, ...]] = {
    "street_number": ("house_number",),
    "street": ("road", "pedestrian", "footway", "path"),
    "city": ("city", "town", "village", "municipality", "hamlet"),
    "region": ("state", "region", "province"),
    "postal_code": ("postcode",),
    "country": ("country",),
    "district": ("suburb", "city_district", "district", "quarter", "neighbourhood"),
    "subregion": ("county", "state_district"),
}


def parse_nominatim_address(address: Mapping[str, Any]) -> GeocodedAddress:
    """Map a Nominatim ``address`` object onto a :class:`GeocodedAddress`."""
    fields: dict[str, Any] = {}
    for field_name, keys in _NOMINATIM_FIELDS.items():
        for key in keys:
            value = address.get(key)
            if value:
                fields[field_name] = value
                break
    return GeocodedAddress.model_validate({**fields, "raw": dict(address)})


class NominatimGeocoder:
    """Reverse geocoder backed by a Nominatim-compatible ``/reverse`` endpoint."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        base_url: str = DEFAULT_GEOCODER_URL,
        language: str | None = None,
    ) -> None:
        self._http = http_session
        self._base_url = base_url.rstrip("/")
        self._language = language

    async def reverse_geocode(self, latitude: float, longitude: float) -> list[GeocodedAddress]:
        """Return zero or one candidate for the coordinate.

        Raises
        ------
        GeocodeError
            On network failure, non-200 status or a malformed reply.
        """
        url = f"{self._base_url}/reverse"
        params = {
            "format": "jsonv2",
            "lat": str(latitude),
            "lon": str(longitude),
            "addressdetails": "1",
        }
        headers = {"user-agent": USER_AGENT, "accept": "application/json"}
        if self._language:
            headers["accept-language"] = self._language

        _logger.debug("GET %s lat=%s lon=%s", url, latitude, longitude)
        try:
            async with self._http.get(url, params=params, headers=headers) as resp:
                if resp.status != 200:
                    text = await resp.text()
                    raise GeocodeError(f"HTTP {resp.status} from {url}: {text[:200]}")
                body = await resp.json(content_type=None)
        except GeocodeError:
            raise
        except (aiohttp.ClientError, ValueError) as exc:
            raise GeocodeError(f"Reverse geocode request to {url} failed: {exc}") from exc

        if not isinstance(body, dict):
            raise GeocodeError(f"Unexpected reverse geocode payload from {url}")
        # Nominatim reports "Unable to geocode" as a 200 with an error key.
        if "error" in body:
            _logger.debug("Reverse geocode miss: %s", body["error"])
            return []
        address = body.get("address")
        if not isinstance(address, dict):
            return []
        return [parse_nominatim_address(address)]
