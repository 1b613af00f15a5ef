"""Filtering, sorting, phone-duplicate detection and statistics over a snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from prospectdb.domain.ingest.normalize import SMALL_BUSINESS_CODES

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from prospectdb.domain.model import ContactRecord, ExportEvent

_MISSING_ROUTE = 999_999.0
_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
UNDER_HALF_HOUR_SECONDS = 1800


class SortKey(StrEnum):
    DURATION = "duration"
    DISTANCE = "distance"
    POSTAL_CODE = "postal_code"
    NAME = "name"
    CREATED_AT = "created_at"
    UNIQUE_ID = "unique_id"


def phone_duplicate_ids(records: Iterable[ContactRecord]) -> set[str]:
    """Identifiers of records sharing any phone, mobile or phone2 number."""

    owners: dict[str, list[str]] = {}
    for record in records:
        for phone in (record.phone, record.mobile, record.phone2):
            if phone:
                owners.setdefault(phone, []).append(record.unique_id)
    return {uid for group in owners.values() if len(group) > 1 for uid in group}


def split_phone_duplicates(
    records: Iterable[ContactRecord],
) -> tuple[list[ContactRecord], list[ContactRecord]]:
    """Split into ``(kept, removed)``; the first record of each phone group is kept."""

    seen: set[str] = set()
    kept: list[ContactRecord] = []
    removed: list[ContactRecord] = []
    for record in records:
        phones = record.phones
        if any(phone in seen for phone in phones):
            removed.append(record)
            continue
        seen.update(phones)
        kept.append(record)
    return kept, removed


@dataclass(frozen=True, slots=True)
class ContactFilter:
    """Criteria combined with AND. Unset criteria do not filter."""

    postal_code: str | None = None
    city: str | None = None
    category: str | None = None
    search: str | None = None
    only_small_business: bool = False
    max_duration_minutes: float | None = None
    only_new: bool = False
    only_exported: bool = False
    export_id: int | None = None
    only_duplicates: bool = False

    def apply(
        self,
        records: Iterable[ContactRecord],
        *,
        exports: Sequence[ExportEvent] = (),
    ) -> list[ContactRecord]:
        items = list(records)
        result = items
        if self.postal_code:
            prefix = self.postal_code
            result = [r for r in result if r.postal_code and r.postal_code.startswith(prefix)]
        if self.city:
            city = self.city.lower()
            result = [r for r in result if r.city and city in r.city.lower()]
        if self.category:
            category = self.category.lower()
            result = [r for r in result if r.category and category in r.category.lower()]
        if self.search:
            needle = self.search.lower()
            result = [r for r in result if _matches_search(r, needle)]
        if self.only_duplicates:
            duplicates = phone_duplicate_ids(items)
            result = [r for r in result if r.unique_id in duplicates]
        if self.only_small_business:
            result = [r for r in result if r.api_effectif_code in SMALL_BUSINESS_CODES]
        if self.max_duration_minutes is not None and self.max_duration_minutes > 0:
            limit = self.max_duration_minutes * 60
            result = [r for r in result if r.duration_seconds and r.duration_seconds <= limit]
        if self.only_new:
            result = [r for r in result if r.last_exported_at is None]
        if self.only_exported:
            result = [r for r in result if r.last_exported_at is not None]
        if self.export_id is not None:
            event = next((e for e in exports if e.id == self.export_id), None)
            if event is not None:
                result = [r for r in result if event.includes(r.unique_id)]
        return result


def _matches_search(record: ContactRecord, needle: str) -> bool:
    return bool(
        (record.name and needle in record.name.lower())
        or (record.siret and needle in record.siret)
        or needle in record.unique_id.lower()
    )


def sort_records(records: Iterable[ContactRecord], key: SortKey) -> list[ContactRecord]:
    """Stable sort; missing routes go last, ``created_at`` sorts newest first."""

    items = list(records)
    match key:
        case SortKey.DURATION:
            return sorted(items, key=lambda r: r.duration_seconds or _MISSING_ROUTE)
        case SortKey.DISTANCE:
            return sorted(items, key=lambda r: r.distance_meters or _MISSING_ROUTE)
        case SortKey.POSTAL_CODE:
            return sorted(items, key=lambda r: r.postal_code or "")
        case SortKey.NAME:
            return sorted(items, key=lambda r: (r.name or "").casefold())
        case SortKey.CREATED_AT:
            return sorted(items, key=lambda r: r.created_at or _EPOCH, reverse=True)
        case SortKey.UNIQUE_ID:
            return sorted(items, key=lambda r: r.unique_id)


@dataclass(frozen=True, slots=True)
class ContactStats:
    total: int
    enriched: int
    small_business: int
    geocoded: int
    with_routes: int
    under_30_minutes: int
    never_exported: int

    @classmethod
    def compute(cls, records: Iterable[ContactRecord]) -> ContactStats:
        items = list(records)
        return cls(
            total=len(items),
            enriched=sum(1 for r in items if r.api_enriched),
            small_business=sum(1 for r in items if r.api_effectif_code in SMALL_BUSINESS_CODES),
            geocoded=sum(1 for r in items if r.lat is not None),
            with_routes=sum(1 for r in items if r.duration_seconds),
            under_30_minutes=sum(
                1
                for r in items
                if r.duration_seconds and r.duration_seconds <= UNDER_HALF_HOUR_SECONDS
            ),
            never_exported=sum(1 for r in items if r.last_exported_at is None),
        )
