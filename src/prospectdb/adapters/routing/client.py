"""Driving route client."""

from __future__ import annotations

from logging import getLogger

import httpx
from pydantic import ValidationError

from prospectdb.adapters.http_resilience import ProviderClient
from prospectdb.domain.model import RouteStatus
from prospectdb.domain.ports import RouteUpdate

from .schema import RouteResponse

log = getLogger(__name__)

ROUTE_PATH = "/itineraire"
ROUTE_PARAMS = {
    "resource": "bdtopo-osrm",
    "profile": "car",
    "optimization": "fastest",
    "distanceUnit": "meter",
    "timeUnit": "second",
}


def _lon_lat(point: tuple[float, float]) -> str:
    lat, lon = point
    return f"{lon},{lat}"


class RoutingClient(ProviderClient):
    """Fastest car route between two ``(lat, lon)`` points."""

    async def fetch_route(
        self,
        start: tuple[float, float],
        end: tuple[float, float],
    ) -> RouteResponse:
        payload = await self._get_json(
            ROUTE_PATH,
            {**ROUTE_PARAMS, "start": _lon_lat(start), "end": _lon_lat(end)},
        )
        return RouteResponse.model_validate(payload)

    async def route(self, start: tuple[float, float], end: tuple[float, float]) -> RouteUpdate:
        try:
            response = await self.fetch_route(start, end)
        except (httpx.HTTPError, ValidationError, ValueError) as exc:
            log.warning("Route calculation failed for %s -> %s: %s", start, end, exc)
            return RouteUpdate(status=RouteStatus.ERROR)

        distance = response.distance_meters
        duration = response.duration_seconds
        if distance is None or duration is None:
            log.warning("Route response for %s -> %s lacks distance or duration", start, end)
            return RouteUpdate(status=RouteStatus.ERROR)
        return RouteUpdate(
            status=RouteStatus.SUCCESS,
            distance_meters=distance,
            duration_seconds=duration,
        )
