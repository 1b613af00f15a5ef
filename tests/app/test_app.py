from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from prospectdb import app
from prospectdb.config import ContactsConfig, ProviderConfig, ProvidersConfig
from prospectdb.domain.export_ledger import EXPORT_COLUMNS
from prospectdb.domain.model import ApiStatus, EnrichmentKind, GeoStatus, MergeMode, RouteStatus
from prospectdb.domain.ports import SheetData
from prospectdb.domain.selection import ContactFilter
from tests.helpers.contacts import fixed_clock
from tests.helpers.http import mock_client_factory, resilience_config

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from prospectdb.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
    from prospectdb.domain.contact_book import ContactBook
    from prospectdb.domain.enrichment import EnrichmentTask, Progress

PROVIDERS = ProvidersConfig(
    registry=ProviderConfig(resilience_config("registry", "https://registry.test"), 0.0),
    geocoding=ProviderConfig(resilience_config("geocoding", "https://geo.test"), 0.0),
    routing=ProviderConfig(resilience_config("routing", "https://route.test"), 0.0),
)

REGISTRY_PAYLOAD = {
    "results": [
        {
            "siren": "123456789",
            "tranche_effectif_salarie": "02",
            "activite_principale": "10.71C",
            "siege": {"siret": "12345678900012"},
            "dirigeants": [{"nom": "MARTIN", "prenoms": "Jean"}],
        }
    ]
}
GEOCODING_PAYLOAD = {
    "features": [{"geometry": {"type": "Point", "coordinates": [4.85, 45.75]}}],
}
ROUTE_PAYLOAD = {"distance": 12500.0, "duration": 1140.0}


def providers_handler(request: httpx.Request) -> httpx.Response:
    host = request.url.host
    if host == "registry.test":
        return httpx.Response(200, json=REGISTRY_PAYLOAD)
    if host == "geo.test":
        return httpx.Response(200, json=GEOCODING_PAYLOAD)
    if host == "route.test":
        return httpx.Response(200, json=ROUTE_PAYLOAD)
    return httpx.Response(404)


@pytest.fixture
def book(sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork]) -> ContactBook:
    return app.open_contact_book(
        unit_of_work_factory=sqlite_unit_of_work,
        contacts_config=ContactsConfig(default_id_prefix="T"),
        clock=fixed_clock,
    )


@pytest.fixture
def contacts_csv(tmp_path: Path) -> Path:
    path = tmp_path / "salon.csv"
    path.write_text(
        "Nom;Adresse;CP;Ville;Tel\n"
        "Boulangerie Martin;2 rue Neuve;69001;Lyon;06 11 11 11 11\n"
        "Atelier Durand;5 quai Perrache;69002;Lyon;06 22 22 22 22\n",
        encoding="utf-8",
    )
    return path


def test_import_file_commits_preview(book: ContactBook, contacts_csv: Path) -> None:
    outcome = app.import_file(book, contacts_csv)

    assert outcome.mapping["postalCode"] == "CP"
    assert outcome.summary is not None
    assert outcome.summary.added == 2
    assert [record.source_file for record in book.records] == ["salon.csv", "salon.csv"]


def test_import_file_dry_run_writes_nothing(book: ContactBook, contacts_csv: Path) -> None:
    outcome = app.import_file(book, contacts_csv, dry_run=True)

    assert outcome.summary is None
    assert len(outcome.preview.unique) == 2
    assert len(book) == 0


def test_import_file_applies_overrides(book: ContactBook, contacts_csv: Path) -> None:
    outcome = app.import_file(book, contacts_csv, overrides={"city": None, "address": "Ville"})

    assert "city" not in outcome.mapping
    assert book.records[0].address == "Lyon"
    assert book.records[0].city is None


def test_import_file_reimport_is_deduplicated(book: ContactBook, contacts_csv: Path) -> None:
    app.import_file(book, contacts_csv)

    outcome = app.import_file(book, contacts_csv, mode=MergeMode.NEW_ONLY)

    assert outcome.summary is not None
    assert outcome.summary.added == 0
    assert len(book) == 2


def test_registry_pass_enriches_and_persists(
    book: ContactBook,
    contacts_csv: Path,
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    app.import_file(book, contacts_csv)
    events: list[Progress] = []

    result = app.enrich_from_registry(
        book,
        providers=PROVIDERS,
        client_factory=mock_client_factory(providers_handler),
        on_progress=events.append,
    )

    assert result.processed == 2
    assert [event.current for event in events] == [1, 2]
    reloaded = app.open_contact_book(unit_of_work_factory=sqlite_unit_of_work)
    for record in reloaded.records:
        assert record.api_enriched
        assert record.api_status is ApiStatus.SUCCESS
        assert record.api_effectif_code == "02"
        assert record.api_dirigeants == "Jean MARTIN"


def test_registry_pass_without_candidates_makes_no_requests(book: ContactBook) -> None:
    def unexpected(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request {request.url}")

    result = app.enrich_from_registry(
        book,
        providers=PROVIDERS,
        client_factory=mock_client_factory(unexpected),
    )

    assert result.total == 0


def test_cancelled_pass_keeps_processed_records(book: ContactBook, contacts_csv: Path) -> None:
    app.import_file(book, contacts_csv)
    tasks: list[EnrichmentTask] = []

    def cancel_after_first(progress: Progress) -> None:
        if progress.current == 1:
            tasks[0].cancel()

    result = app.geocode_records(
        book,
        providers=PROVIDERS,
        client_factory=mock_client_factory(providers_handler),
        on_progress=cancel_after_first,
        on_task=tasks.append,
    )

    assert result.cancelled
    assert result.processed == 1
    assert sum(1 for record in book.records if record.is_geocoded) == 1


def test_routes_require_a_located_start_point(book: ContactBook) -> None:
    with pytest.raises(ValueError, match="start point"):
        app.calculate_routes(book, providers=PROVIDERS)


def test_process_all_runs_every_pass(book: ContactBook, contacts_csv: Path) -> None:
    app.import_file(book, contacts_csv)
    factory = mock_client_factory(providers_handler)
    start = app.set_start_point(
        book,
        "Place Bellecour, Lyon",
        providers=PROVIDERS,
        client_factory=factory,
    )

    results = app.process_all(book, providers=PROVIDERS, client_factory=factory)

    assert start.status is GeoStatus.SUCCESS
    assert book.start_point == start
    assert [result.kind for result in results] == [
        EnrichmentKind.REGISTRY,
        EnrichmentKind.GEOCODING,
        EnrichmentKind.ROUTING,
    ]
    for record in book.records:
        assert record.geo_status is GeoStatus.SUCCESS
        assert record.route_status is RouteStatus.SUCCESS
        assert record.duration_seconds == 1140.0


def test_process_all_skips_routes_without_start_point(
    book: ContactBook,
    contacts_csv: Path,
) -> None:
    app.import_file(book, contacts_csv)

    results = app.process_all(
        book,
        providers=PROVIDERS,
        client_factory=mock_client_factory(providers_handler),
    )

    assert [result.kind for result in results] == [
        EnrichmentKind.REGISTRY,
        EnrichmentKind.GEOCODING,
    ]


def test_export_contacts_writes_workbook_then_stamps(
    book: ContactBook,
    contacts_csv: Path,
    tmp_path: Path,
) -> None:
    app.import_file(book, contacts_csv)

    outcome = app.export_contacts(
        book,
        criteria=ContactFilter(postal_code="69001"),
        output_dir=tmp_path / "exports",
        clock=fixed_clock,
    )

    assert outcome.path == tmp_path / "exports" / "export_2024-03-15_1fiches.xlsx"
    assert outcome.path.exists()
    assert outcome.stamp.event.contact_ids == ("T_00001",)
    assert book.get("T_00001").export_count == 1
    assert len(book.exports) == 1


def test_export_contacts_rejects_empty_selection(book: ContactBook, tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="No contacts"):
        app.export_contacts(book, output_dir=tmp_path)

    assert list(tmp_path.iterdir()) == []


def test_import_and_export_go_through_the_given_spreadsheet_codec(
    book: ContactBook,
    tmp_path: Path,
) -> None:
    written: list[tuple[Path, list[dict[str, object]], tuple[str, ...]]] = []

    def reader(path: Path) -> SheetData:
        assert path.name == "salon.xlsx"
        return SheetData(
            headers=["Nom", "Tel"],
            rows=[{"Nom": "Fleurs Leroy", "Tel": "0644444444"}],
        )

    def writer(
        path: Path,
        rows: Sequence[dict[str, object]],
        *,
        columns: Sequence[str],
        sheet_name: str = "Export",
    ) -> Path:
        written.append((path, list(rows), tuple(columns)))
        return path

    app.import_file(book, tmp_path / "salon.xlsx", reader=reader)
    outcome = app.export_contacts(book, output_dir=tmp_path, clock=fixed_clock, writer=writer)

    ((path, rows, columns),) = written
    assert path == outcome.path
    assert not path.exists()
    assert [row["Nom"] for row in rows] == ["Fleurs Leroy"]
    assert columns == EXPORT_COLUMNS
    assert book.get("T_00001").export_count == 1
