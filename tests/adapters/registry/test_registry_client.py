"""Registry client behaviour against a mocked search endpoint."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx

from prospectdb.adapters.registry import RegistryClient, registry_query
from prospectdb.domain.model import ApiStatus
from tests.helpers.contacts import make_record
from tests.helpers.http import mock_client_factory, resilience_config

if TYPE_CHECKING:
    from prospectdb.domain.model import ContactRecord
    from prospectdb.domain.ports import RegistryUpdate
    from tests.helpers.http import Handler

COMPANY_PAYLOAD: dict[str, object] = {
    "results": [
        {
            "siren": "123456789",
            "nom_complet": "BOULANGERIE MARTIN",
            "activite_principale": "10.71C",
            "tranche_effectif_salarie": "01",
            "date_creation": "2001-05-01",
            "siege": {
                "siret": "12345678900012",
                "code_postal": "69001",
                "latitude": "45.767",
                "longitude": "4.834",
            },
            "dirigeants": [
                {"nom": "MARTIN", "prenoms": "Jean", "type_dirigeant": "personne physique"},
                {"denomination": "HOLDING MARTIN", "type_dirigeant": "personne morale"},
            ],
        }
    ],
    "total_results": 1,
    "page": 1,
    "per_page": 1,
}


def _lookup(
    record: ContactRecord,
    handler: Handler,
    requests: list[httpx.Request] | None = None,
) -> RegistryUpdate:
    async def run() -> RegistryUpdate:
        async with RegistryClient(
            config=resilience_config("registry"),
            client_factory=mock_client_factory(handler, requests),
        ) as client:
            return await client.lookup(record)

    return asyncio.run(run())


def test_registry_query_prefers_siret() -> None:
    assert registry_query(make_record(siret="12345678900012", city="Lyon")) == "12345678900012"
    assert registry_query(make_record(name="Martin", city="Lyon")) == "Martin Lyon"
    assert registry_query(make_record(name="Martin")) == "Martin"
    assert registry_query(make_record(name=None)) == ""


def test_lookup_translates_first_result() -> None:
    requests: list[httpx.Request] = []

    update = _lookup(
        make_record(name="Boulangerie Martin", city="Lyon"),
        lambda _: httpx.Response(200, json=COMPANY_PAYLOAD),
        requests,
    )

    (request,) = requests
    assert request.url.path == "/search"
    assert request.url.params["q"] == "Boulangerie Martin Lyon"
    assert request.url.params["per_page"] == "1"
    assert update.status is ApiStatus.SUCCESS
    assert update.siren == "123456789"
    assert update.siret == "12345678900012"
    assert update.effectif_code == "01"
    assert update.effectif_label == "1-2 sal."
    assert update.naf == "10.71C"
    assert update.date_creation == "2001-05-01"
    assert update.dirigeants == "Jean MARTIN, HOLDING MARTIN"
    assert (update.lat, update.lon) == (45.767, 4.834)


def test_lookup_without_results_is_not_found() -> None:
    update = _lookup(
        make_record(siret="00000000000000"),
        lambda _: httpx.Response(200, json={"results": [], "total_results": 0}),
    )

    assert update.status is ApiStatus.NOT_FOUND


def test_lookup_without_query_is_no_data() -> None:
    def unexpected(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request {request.url}")

    update = _lookup(make_record(name=None), unexpected)

    assert update.status is ApiStatus.NO_DATA


def test_lookup_http_error_is_reported_as_status() -> None:
    update = _lookup(make_record(), lambda _: httpx.Response(503, text="maintenance"))

    assert update.status is ApiStatus.ERROR


def test_lookup_malformed_payload_is_reported_as_status() -> None:
    update = _lookup(make_record(), lambda _: httpx.Response(200, json=["not", "an", "object"]))

    assert update.status is ApiStatus.ERROR


def test_lookup_blank_coordinates_are_ignored() -> None:
    payload = {"results": [{"siren": "123456789", "siege": {"latitude": "", "longitude": ""}}]}

    update = _lookup(make_record(), lambda _: httpx.Response(200, json=payload))

    assert update.status is ApiStatus.SUCCESS
    assert update.lat is None
    assert update.lon is None
    assert update.dirigeants is None
