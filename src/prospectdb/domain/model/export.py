"""Export log entries and the route start point."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import GeoStatus


@dataclass(eq=False)
class ExportEvent:
    """One export of a set of records. Never edited once stored.

    ``id`` is assigned by the store when the event is appended to the log.
    """

    date: datetime
    count: int
    contact_ids: tuple[str, ...] = field(default_factory=tuple)
    id: int | None = None

    def includes(self, unique_id: str) -> bool:
        return unique_id in self.contact_ids


@dataclass(frozen=True, slots=True)
class StartPoint:
    """Origin used for route calculation."""

    address: str
    lat: float | None = None
    lon: float | None = None
    status: GeoStatus | None = None

    @property
    def is_located(self) -> bool:
        return self.lat is not None and self.lon is not None
