# fleettrack/services/geocode.py
"""Nominatim lookups for the assignment location picker."""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class GeocodeError(Exception):
    pass


@dataclass(frozen=True)
class Place:
    lat: float
    lng: float
    label: str


class Geocoder:
    def __init__(
        self,
        base_url: str,
        contact: str,
        timeout: float = 12.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        # Respect their usage policy: identify the app with a UA + contact.
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": f"FleetTrack/1.0 (+{contact})"},
        )

    async def _get(self, path: str, params: dict):
        try:
            r = await self._client.get(path, params={**params, "format": "json"})
            r.raise_for_status()
            return r.json()
        except (httpx.HTTPError, ValueError) as ex:
            logger.warning("Geocoder %s failed: %s", path, ex)
            raise GeocodeError("Location lookup failed") from ex

    async def geocode(self, address: str) -> Place:
        """Best match for free text. Raises GeocodeError on failure."""
        a = (address or "").strip()
        if not a:
            raise GeocodeError("Empty address")
        js = await self._get("/search", {"q": a, "limit": 1})
        # an error object ({"error": ...}) comes back with status 200
        if not isinstance(js, list) or not js:
            raise GeocodeError("No results")
        hit = js[0]
        try:
            return Place(float(hit["lat"]), float(hit["lon"]), hit.get("display_name") or a)
        except (KeyError, TypeError, ValueError, AttributeError) as ex:
            logger.warning("Unexpected geocoder hit %r: %s", hit, ex)
            raise GeocodeError("No results") from ex

    async def reverse(self, lat: float, lng: float) -> str:
        js = await self._get("/reverse", {"lat": lat, "lon": lng})
        if not isinstance(js, dict) or not js.get("display_name"):
            raise GeocodeError("No results")
        return js["display_name"]

    async def aclose(self) -> None:
        await self._client.aclose()
