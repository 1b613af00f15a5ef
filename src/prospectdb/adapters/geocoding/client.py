"""Address geocoding client."""

from __future__ import annotations

from logging import getLogger

import httpx
from pydantic import ValidationError

from prospectdb.adapters.http_resilience import ProviderClient
from prospectdb.domain.model import GeoStatus, StartPoint
from prospectdb.domain.ports import GeocodeUpdate

from .schema import AddressSearchResponse

log = getLogger(__name__)

SEARCH_PATH = "/search/"


def geocoding_query(address: str | None, postal_code: str | None, city: str | None) -> str:
    return f"{address or ''} {postal_code or ''} {city or ''}".strip()


class GeocodingClient(ProviderClient):
    """Resolves free-text addresses to coordinates using the first match."""

    async def search(self, query: str, *, limit: int = 1) -> AddressSearchResponse:
        payload = await self._get_json(SEARCH_PATH, {"q": query, "limit": str(limit)})
        return AddressSearchResponse.model_validate(payload)

    async def geocode(
        self,
        address: str | None,
        postal_code: str | None = None,
        city: str | None = None,
    ) -> GeocodeUpdate:
        query = geocoding_query(address, postal_code, city)
        if not query:
            return GeocodeUpdate(status=GeoStatus.NO_DATA)
        try:
            response = await self.search(query)
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            log.warning("Geocoding failed for %r: %s", query, exc)
            return GeocodeUpdate(status=GeoStatus.ERROR)

        if not response.features:
            log.info("No geocoding match for %r", query)
            return GeocodeUpdate(status=GeoStatus.NOT_FOUND)
        geometry = response.features[0].geometry
        return GeocodeUpdate(status=GeoStatus.SUCCESS, lat=geometry.lat, lon=geometry.lon)

    async def locate_start_point(self, address: str) -> StartPoint:
        update = await self.geocode(address)
        return StartPoint(
            address=address.strip(),
            lat=update.lat,
            lon=update.lon,
            status=update.status,
        )
