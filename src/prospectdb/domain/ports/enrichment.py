"""Port definitions for registry, geocoding and routing lookups."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from prospectdb.domain.model import ApiStatus, ContactRecord, GeoStatus, RouteStatus


@dataclass(frozen=True, slots=True)
class RegistryUpdate:
    """Company registry lookup outcome for one record."""

    status: ApiStatus
    siren: str | None = None
    siret: str | None = None
    effectif_code: str | None = None
    effectif_label: str | None = None
    naf: str | None = None
    date_creation: str | None = None
    dirigeants: str | None = None
    lat: float | None = None
    lon: float | None = None


@dataclass(frozen=True, slots=True)
class GeocodeUpdate:
    """Address geocoding outcome."""

    status: GeoStatus
    lat: float | None = None
    lon: float | None = None


@dataclass(frozen=True, slots=True)
class RouteUpdate:
    """Driving route outcome between the start point and a record."""

    status: RouteStatus
    distance_meters: float | None = None
    duration_seconds: float | None = None


@runtime_checkable
class RegistryLookup(Protocol):
    async def lookup(self, record: ContactRecord) -> RegistryUpdate: ...


@runtime_checkable
class Geocoder(Protocol):
    async def geocode(
        self,
        address: str | None,
        postal_code: str | None = None,
        city: str | None = None,
    ) -> GeocodeUpdate: ...


@runtime_checkable
class RouteCalculator(Protocol):
    async def route(
        self,
        start: tuple[float, float],
        end: tuple[float, float],
    ) -> RouteUpdate:
        """Route between two ``(lat, lon)`` points."""
        ...
