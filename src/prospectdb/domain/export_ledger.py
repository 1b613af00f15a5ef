"""Export provenance: event creation, record stamping and output rendering."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import UTC
from typing import TYPE_CHECKING, Final

from prospectdb.domain.model import ExportEvent

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from prospectdb.domain.model import ContactRecord

log = logging.getLogger(__name__)

EXPORT_COLUMNS: Final[tuple[str, ...]] = (
    "ID Fiche",
    "Nom",
    "Adresse",
    "Code Postal",
    "Ville",
    "Téléphone",
    "Mobile",
    "Email",
    "Catégorie",
    "SIRET",
    "SIREN",
    "Code NAF",
    "Effectif (code)",
    "Effectif",
    "Dirigeants",
    "Date Création Ent.",
    "Distance (km)",
    "Temps trajet (min)",
    "Latitude",
    "Longitude",
    "Date Import",
    "Dernier Export",
    "Nb Exports",
    "Source",
)

DATETIME_FORMAT: Final = "%d/%m/%Y %H:%M:%S"

type ExportRow = dict[str, object]


@dataclass(frozen=True, slots=True)
class ExportStamp:
    """New export event plus the selected records with updated export metadata."""

    event: ExportEvent
    records: tuple[ContactRecord, ...]


def record_export(timestamp: datetime, selected: Sequence[ContactRecord]) -> ExportStamp:
    """Build the export event for ``selected`` and stamp each record.

    ``last_exported_at`` never moves backwards and ``export_count`` grows by one.
    """

    event = ExportEvent(
        date=timestamp,
        count=len(selected),
        contact_ids=tuple(record.unique_id for record in selected),
    )
    stamped = tuple(
        record.evolve(
            last_exported_at=(
                timestamp
                if record.last_exported_at is None
                else max(record.last_exported_at, timestamp)
            ),
            export_count=record.export_count + 1,
            updated_at=timestamp,
        )
        for record in selected
    )
    log.debug("Stamped %s records for export at %s", len(stamped), timestamp.isoformat())
    return ExportStamp(event=event, records=stamped)


def format_phone(phone: str | None) -> str | None:
    """Render a 10-digit number in pairs; other values pass through."""

    if phone is None or len(phone) != 10:
        return phone
    return " ".join(phone[i : i + 2] for i in range(0, 10, 2))


def format_datetime(value: datetime | None) -> str:
    if value is None:
        return ""
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.strftime(DATETIME_FORMAT)


def format_distance_km(meters: float | None) -> str:
    if not meters:
        return ""
    return f"{meters / 1000:.1f}"


def format_duration_minutes(seconds: float | None) -> int | str:
    if not seconds:
        return ""
    return math.floor(seconds / 60 + 0.5)


def export_row(record: ContactRecord) -> ExportRow:
    values: tuple[object, ...] = (
        record.unique_id,
        record.name,
        record.address,
        record.postal_code,
        record.city,
        format_phone(record.phone),
        format_phone(record.mobile),
        record.email,
        record.category,
        record.siret,
        record.siren,
        record.api_naf or record.naf,
        record.api_effectif_code,
        record.api_effectif_label,
        record.api_dirigeants,
        record.api_date_creation,
        format_distance_km(record.distance_meters),
        format_duration_minutes(record.duration_seconds),
        record.lat,
        record.lon,
        format_datetime(record.created_at),
        format_datetime(record.last_exported_at),
        record.export_count,
        record.source_file,
    )
    return dict(zip(EXPORT_COLUMNS, values, strict=True))


def export_rows(records: Sequence[ContactRecord]) -> list[ExportRow]:
    return [export_row(record) for record in records]


def export_filename(timestamp: datetime, count: int) -> str:
    return f"export_{timestamp.strftime('%Y-%m-%d')}_{count}fiches.xlsx"
