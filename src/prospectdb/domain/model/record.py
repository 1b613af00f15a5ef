"""Canonical contact record."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from .enums import ApiStatus, GeoStatus, RouteStatus


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(eq=False)
class ContactRecord:
    """One business contact, keyed by ``unique_id``.

    Instances are treated as values by the domain: every mutation goes through
    :func:`dataclasses.replace` (see :meth:`evolve`) so that a snapshot held by the
    contact book is never changed behind its back.
    """

    unique_id: str
    name: str | None = None
    address: str | None = None
    postal_code: str | None = None
    city: str | None = None
    phone: str | None = None
    mobile: str | None = None
    phone2: str | None = None
    email: str | None = None
    website: str | None = None
    category: str | None = None

    siret: str | None = None
    siren: str | None = None
    naf: str | None = None
    legal_form: str | None = None
    capital: str | None = None
    department: str | None = None
    region: str | None = None
    description: str | None = None
    services: str | None = None

    api_enriched: bool = False
    api_status: ApiStatus | None = None
    api_effectif_code: str | None = None
    api_effectif_label: str | None = None
    api_naf: str | None = None
    api_date_creation: str | None = None
    api_dirigeants: str | None = None

    lat: float | None = None
    lon: float | None = None
    geo_status: GeoStatus | None = None

    distance_meters: float | None = None
    duration_seconds: float | None = None
    route_status: RouteStatus | None = None

    source_file: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_exported_at: datetime | None = None
    export_count: int = 0

    @property
    def phones(self) -> tuple[str, ...]:
        """Non-empty phone numbers in phone, mobile, phone2 order."""

        return tuple(p for p in (self.phone, self.mobile, self.phone2) if p)

    @property
    def is_geocoded(self) -> bool:
        return self.lat is not None and self.lon is not None

    def evolve(self, **changes: object) -> ContactRecord:
        """Return a copy with ``changes`` applied."""

        return replace(self, **changes)  # type: ignore[arg-type]


FIELD_NAMES: Final[tuple[str, ...]] = tuple(f.name for f in fields(ContactRecord))
