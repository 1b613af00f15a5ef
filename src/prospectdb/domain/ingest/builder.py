"""Turn raw spreadsheet rows into canonical contact records."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from prospectdb.domain.model import ApiStatus, ContactRecord, GeoStatus, utcnow

from .normalize import (
    HEADCOUNT_LABELS,
    cell_text,
    digits_only,
    normalize_phone,
    normalize_postal_code,
    resolve_headcount,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

    from .synonyms import ColumnMapping

type Row = Mapping[str, object]

log = logging.getLogger(__name__)

_DATE_FORMATS = (
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
)


class EmptyImportError(ValueError):
    """Raised when an import carries no rows at all."""


def format_unique_id(prefix: str, counter: int) -> str:
    return f"{prefix}_{counter:05d}"


def id_counter(unique_id: str, prefix: str) -> int | None:
    """Counter value encoded in ``{prefix}_NNNNN`` identifiers, else ``None``."""

    match = re.fullmatch(rf"{re.escape(prefix)}_(\d+)", unique_id)
    return int(match.group(1)) if match else None


def next_free_counter(unique_ids: Iterable[str], prefix: str, counter: int) -> int:
    """Smallest counter at or above ``counter`` that is above every used one."""

    used = (id_counter(uid, prefix) for uid in unique_ids)
    return max([counter, *(value + 1 for value in used if value is not None)])


@dataclass(slots=True)
class IdAllocator:
    """Hands out generated identifiers, skipping the ones in ``taken``."""

    prefix: str
    counter: int
    taken: set[str] = field(default_factory=set[str])

    def allocate(self) -> str:
        unique_id = format_unique_id(self.prefix, self.counter)
        while unique_id in self.taken:
            self.counter += 1
            unique_id = format_unique_id(self.prefix, self.counter)
        self.counter += 1
        self.taken.add(unique_id)
        return unique_id


def parse_timestamp(value: object) -> datetime | None:
    """Read a timestamp cell: datetime objects, ISO-8601 or ``dd/mm/YYYY`` text."""

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    text = cell_text(value)
    if text is None:
        return None
    normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)  # noqa: DTZ007
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def parse_float(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    else:
        text = cell_text(value)
        if text is None:
            return None
        try:
            number = float(text.replace(",", "."))
        except ValueError:
            return None
    if number != number:  # NaN
        return None
    return number


def parse_count(value: object) -> int:
    text = cell_text(value)
    if text is None:
        return 0
    try:
        return max(int(float(text)), 0)
    except ValueError:
        return 0


@dataclass(frozen=True, slots=True)
class BuiltRecord:
    record: ContactRecord
    generated_id: bool

    @property
    def is_empty(self) -> bool:
        record = self.record
        return not (record.name or record.phone or record.siret)


@dataclass(slots=True)
class PreparedBatch:
    """Records built from one import plus the counter value to persist afterwards."""

    records: list[ContactRecord]
    next_counter: int
    keep_existing_ids: bool
    discarded: int = 0


@dataclass(slots=True)
class RecordBuilder:
    """Build canonical records from rows using a column mapping."""

    prefix: str
    headcount_labels: Mapping[str, str] = field(default_factory=lambda: HEADCOUNT_LABELS)
    clock: Callable[[], datetime] = utcnow

    def build(
        self,
        row: Row,
        mapping: ColumnMapping,
        source_file: str | None,
        counter: int,
        *,
        keep_existing_id: bool = False,
    ) -> BuiltRecord:
        def get(field_name: str) -> object:
            header = mapping.get(field_name)
            if not header:
                return None
            value = row.get(header)
            if value is None or (isinstance(value, str) and not value.strip()):
                return None
            return value

        def text(field_name: str) -> str | None:
            return cell_text(get(field_name))

        existing_id = text("uniqueId")
        if keep_existing_id and existing_id is not None:
            unique_id, generated = existing_id, False
        else:
            unique_id, generated = format_unique_id(self.prefix, counter), True

        headcount = resolve_headcount(
            get("effectifCode"), get("effectifLabel"), labels=self.headcount_labels
        )
        lat = parse_float(get("lat"))
        pre_enriched = headcount.present or lat is not None
        now = self.clock()

        record = ContactRecord(
            unique_id=unique_id,
            name=text("name"),
            address=text("address"),
            postal_code=normalize_postal_code(get("postalCode")),
            city=text("city"),
            phone=normalize_phone(get("phone")),
            mobile=normalize_phone(get("mobile")),
            phone2=normalize_phone(get("phone2")),
            email=text("email"),
            website=text("website"),
            category=text("category"),
            siret=digits_only(get("siret")),
            siren=digits_only(get("siren")),
            naf=text("naf"),
            legal_form=text("legalForm"),
            capital=text("capital"),
            department=text("department"),
            region=text("region"),
            description=text("description"),
            services=text("services"),
            api_enriched=pre_enriched,
            api_status=ApiStatus.IMPORTED if pre_enriched else None,
            api_effectif_code=headcount.code,
            api_effectif_label=headcount.label,
            api_naf=text("naf"),
            api_date_creation=text("dateCreation"),
            api_dirigeants=text("dirigeants"),
            lat=lat,
            lon=parse_float(get("lon")),
            geo_status=GeoStatus.IMPORTED if lat is not None else None,
            source_file=source_file,
            created_at=parse_timestamp(get("createdAt")) or now,
            updated_at=now,
            last_exported_at=parse_timestamp(get("lastExportedAt")),
            export_count=parse_count(get("exportCount")),
        )
        return BuiltRecord(record=record, generated_id=generated)

    def prepare_batch(
        self,
        rows: Sequence[Row],
        mapping: ColumnMapping,
        source_file: str | None,
        counter: int,
    ) -> PreparedBatch:
        """Build every row, drop empty ones and track the identifier counter.

        Existing identifiers are kept when the mapping points at an id column and
        at least one row fills it. The counter advances for every generated
        identifier and moves past kept identifiers of the form ``{prefix}_NNNNN``.
        """

        if not rows:
            raise EmptyImportError("Import contains no rows")

        id_header = mapping.get("uniqueId")
        keep_existing_ids = bool(id_header) and any(
            cell_text(row.get(id_header)) is not None  # type: ignore[arg-type]
            for row in rows
        )

        records: list[ContactRecord] = []
        discarded = 0
        current = counter
        for row in rows:
            built = self.build(
                row, mapping, source_file, current, keep_existing_id=keep_existing_ids
            )
            if built.is_empty:
                discarded += 1
                continue
            if built.generated_id:
                current += 1
            else:
                kept = id_counter(built.record.unique_id, self.prefix)
                if kept is not None:
                    current = max(current, kept + 1)
            records.append(built.record)

        log.info(
            "Prepared %s records from %s rows (%s empty, ids %s, next counter %s)",
            len(records),
            len(rows),
            discarded,
            "kept" if keep_existing_ids else "generated",
            current,
        )
        return PreparedBatch(
            records=records,
            next_counter=current,
            keep_existing_ids=keep_existing_ids,
            discarded=discarded,
        )
