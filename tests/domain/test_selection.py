from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from prospectdb.domain.model import ExportEvent
from prospectdb.domain.selection import (
    ContactFilter,
    ContactStats,
    SortKey,
    phone_duplicate_ids,
    sort_records,
    split_phone_duplicates,
)
from tests.helpers.contacts import make_record

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prospectdb.domain.model import ContactRecord

EXPORTED_AT = datetime(2024, 5, 2, tzinfo=UTC)

RECORDS = [
    make_record(
        "T_00001",
        name="Boulangerie Martin",
        postal_code="69001",
        city="Lyon",
        category="Boulangerie",
        phone="0611111111",
        api_effectif_code="01",
        duration_seconds=900.0,
        distance_meters=8000.0,
        lat=45.76,
        lon=4.83,
        api_enriched=True,
    ),
    make_record(
        "T_00002",
        name="atelier durand",
        postal_code="75011",
        city="Paris",
        category="Menuiserie",
        mobile="0611111111",
        api_effectif_code="21",
        duration_seconds=3600.0,
        distance_meters=40000.0,
        last_exported_at=EXPORTED_AT,
        export_count=1,
    ),
    make_record(
        "T_00003",
        name="Garage Petit",
        postal_code="69100",
        city="Villeurbanne",
        siret="12345678900012",
        phone="0633333333",
        created_at=datetime(2024, 6, 1, tzinfo=UTC),
    ),
]


def _ids(records: Iterable[ContactRecord]) -> list[str]:
    return [record.unique_id for record in records]


def test_empty_filter_keeps_everything() -> None:
    assert _ids(ContactFilter().apply(RECORDS)) == ["T_00001", "T_00002", "T_00003"]


def test_postal_code_prefix_and_city_filters() -> None:
    assert _ids(ContactFilter(postal_code="69").apply(RECORDS)) == ["T_00001", "T_00003"]
    assert _ids(ContactFilter(city="VILLE").apply(RECORDS)) == ["T_00003"]
    assert _ids(ContactFilter(category="menui").apply(RECORDS)) == ["T_00002"]


def test_search_matches_name_siret_and_identifier() -> None:
    assert _ids(ContactFilter(search="DURAND").apply(RECORDS)) == ["T_00002"]
    assert _ids(ContactFilter(search="456789").apply(RECORDS)) == ["T_00003"]
    assert _ids(ContactFilter(search="t_00001").apply(RECORDS)) == ["T_00001"]


def test_small_business_and_duration_filters() -> None:
    assert _ids(ContactFilter(only_small_business=True).apply(RECORDS)) == ["T_00001"]
    assert _ids(ContactFilter(max_duration_minutes=30).apply(RECORDS)) == ["T_00001"]
    assert _ids(ContactFilter(max_duration_minutes=0).apply(RECORDS)) == _ids(RECORDS)


def test_export_state_filters() -> None:
    assert _ids(ContactFilter(only_new=True).apply(RECORDS)) == ["T_00001", "T_00003"]
    assert _ids(ContactFilter(only_exported=True).apply(RECORDS)) == ["T_00002"]


def test_export_id_filter_uses_event_membership() -> None:
    event = ExportEvent(date=EXPORTED_AT, count=1, contact_ids=("T_00003",), id=7)

    selected = ContactFilter(export_id=7).apply(RECORDS, exports=[event])

    assert _ids(selected) == ["T_00003"]


def test_duplicate_filter_looks_at_whole_snapshot() -> None:
    criteria = ContactFilter(only_duplicates=True, city="Lyon")

    assert _ids(criteria.apply(RECORDS)) == ["T_00001"]


def test_phone_duplicate_ids_and_split() -> None:
    assert phone_duplicate_ids(RECORDS) == {"T_00001", "T_00002"}

    kept, removed = split_phone_duplicates(RECORDS)

    assert _ids(kept) == ["T_00001", "T_00003"]
    assert _ids(removed) == ["T_00002"]


def test_sort_records() -> None:
    no_route = make_record("T_00004", name="Zinc", postal_code="01000")
    records = [*RECORDS, no_route]

    assert _ids(sort_records(records, SortKey.DURATION)) == [
        "T_00001",
        "T_00002",
        "T_00003",
        "T_00004",
    ]
    assert _ids(sort_records(records, SortKey.POSTAL_CODE))[0] == "T_00004"
    assert _ids(sort_records(records, SortKey.NAME)) == [
        "T_00002",
        "T_00001",
        "T_00003",
        "T_00004",
    ]
    assert _ids(sort_records(records, SortKey.CREATED_AT))[0] == "T_00003"


def test_stats() -> None:
    stats = ContactStats.compute(RECORDS)

    assert stats == ContactStats(
        total=3,
        enriched=1,
        small_business=1,
        geocoded=1,
        with_routes=2,
        under_30_minutes=1,
        never_exported=2,
    )
