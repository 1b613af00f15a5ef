from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx
import pytest

from prospectdb.adapters.routing import RoutingClient
from prospectdb.adapters.routing.schema import RouteResponse
from prospectdb.domain.model import RouteStatus
from tests.helpers.http import mock_client_factory, resilience_config

if TYPE_CHECKING:
    from prospectdb.domain.ports import RouteUpdate
    from tests.helpers.http import Handler

LYON = (45.7578, 4.8320)
VILLEFRANCHE = (45.9899, 4.7189)


def _route(handler: Handler, requests: list[httpx.Request] | None = None) -> RouteUpdate:
    async def run() -> RouteUpdate:
        async with RoutingClient(
            config=resilience_config("routing"),
            client_factory=mock_client_factory(handler, requests),
        ) as client:
            return await client.route(LYON, VILLEFRANCHE)

    return asyncio.run(run())


def test_route_sends_lon_lat_points_and_units() -> None:
    requests: list[httpx.Request] = []
    payload = {
        "distance": 33100.5,
        "duration": 1710.0,
        "distanceUnit": "meter",
        "timeUnit": "second",
    }

    update = _route(lambda _: httpx.Response(200, json=payload), requests)

    (request,) = requests
    params = request.url.params
    assert request.url.path == "/itineraire"
    assert params["start"] == "4.832,45.7578"
    assert params["end"] == "4.7189,45.9899"
    assert params["profile"] == "car"
    assert params["distanceUnit"] == "meter"
    assert params["timeUnit"] == "second"
    assert update.status is RouteStatus.SUCCESS
    assert update.distance_meters == 33100.5
    assert update.duration_seconds == 1710.0


def test_route_converts_units() -> None:
    payload = {
        "distance": 33.1,
        "duration": 28.5,
        "distanceUnit": "kilometer",
        "timeUnit": "minute",
    }

    update = _route(lambda _: httpx.Response(200, json=payload))

    assert update.distance_meters == pytest.approx(33100.0)
    assert update.duration_seconds == pytest.approx(1710.0)


def test_route_without_duration_is_an_error() -> None:
    update = _route(lambda _: httpx.Response(200, json={"distance": 1000.0}))

    assert update.status is RouteStatus.ERROR
    assert update.distance_meters is None


def test_route_http_failure_is_an_error() -> None:
    update = _route(lambda _: httpx.Response(404, json={"error": "no route"}))

    assert update.status is RouteStatus.ERROR


def test_route_response_defaults_to_meters_and_seconds() -> None:
    response = RouteResponse.model_validate({"distance": 10.0, "duration": 20.0})

    assert response.distance_meters == 10.0
    assert response.duration_seconds == 20.0
