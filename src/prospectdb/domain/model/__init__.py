"""Public domain model surface."""

from __future__ import annotations

from prospectdb.domain.model.enums import (
    ApiStatus,
    DuplicateCause,
    EnrichmentKind,
    GeoStatus,
    MergeMode,
    RouteStatus,
)
from prospectdb.domain.model.export import ExportEvent, StartPoint
from prospectdb.domain.model.record import FIELD_NAMES, ContactRecord, utcnow

__all__ = [
    "FIELD_NAMES",
    "ApiStatus",
    "ContactRecord",
    "DuplicateCause",
    "EnrichmentKind",
    "ExportEvent",
    "GeoStatus",
    "MergeMode",
    "RouteStatus",
    "StartPoint",
    "utcnow",
]
