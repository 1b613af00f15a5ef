"""The contact book: sole owner of the in-memory record snapshot.

Every mutation is written through a unit of work first; the in-memory snapshot is
only swapped after the commit succeeded, so a failed write leaves both the store
and the snapshot as they were.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from prospectdb.domain.export_ledger import ExportStamp, record_export
from prospectdb.domain.ingest import (
    HEADCOUNT_LABELS,
    IdAllocator,
    RecordBuilder,
    next_free_counter,
)
from prospectdb.domain.model import GeoStatus, MergeMode, StartPoint, utcnow
from prospectdb.domain.reconciliation import merge, reconcile
from prospectdb.domain.selection import (
    ContactFilter,
    ContactStats,
    SortKey,
    phone_duplicate_ids,
    sort_records,
    split_phone_duplicates,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence
    from datetime import datetime

    from prospectdb.domain.ingest import ColumnMapping, PreparedBatch
    from prospectdb.domain.model import ContactRecord, ExportEvent
    from prospectdb.domain.ports import UnitOfWorkFactory
    from prospectdb.domain.reconciliation import DuplicateMatch, ReconciliationResult

log = logging.getLogger(__name__)

ID_COUNTER_KEY: Final = "idCounter"
ID_PREFIX_KEY: Final = "idPrefix"
START_POINT_KEY: Final = "startPoint"


class ContactNotFoundError(LookupError):
    """Raised when an operation targets an identifier that is not stored."""

    def __init__(self, unique_id: str) -> None:
        super().__init__(f"No contact with id {unique_id!r}")
        self.unique_id = unique_id


@dataclass(slots=True)
class ImportPreview:
    """Prepared and reconciled import waiting for a merge mode."""

    source_file: str | None
    batch: PreparedBatch
    reconciliation: ReconciliationResult

    @property
    def records(self) -> list[ContactRecord]:
        return self.batch.records

    @property
    def duplicates(self) -> list[DuplicateMatch]:
        return self.reconciliation.duplicates

    @property
    def unique(self) -> list[ContactRecord]:
        return self.reconciliation.unique

    @property
    def next_counter(self) -> int:
        return self.batch.next_counter


@dataclass(frozen=True, slots=True)
class ImportSummary:
    mode: MergeMode
    added: int
    replaced: int
    skipped: int
    next_counter: int


def _start_point_to_json(start: StartPoint) -> dict[str, object]:
    return {
        "address": start.address,
        "lat": start.lat,
        "lon": start.lon,
        "status": None if start.status is None else str(start.status),
    }


def _start_point_from_json(value: object) -> StartPoint | None:
    if not isinstance(value, dict) or not value.get("address"):
        return None
    try:
        status = GeoStatus(value["status"]) if value.get("status") else None
    except ValueError:
        log.warning("Ignoring unknown start point status %r", value["status"])
        status = None
    return StartPoint(
        address=str(value["address"]),
        lat=value.get("lat"),
        lon=value.get("lon"),
        status=status,
    )


class ContactBook:
    """Controller over the persisted contacts, export log and id configuration."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        default_prefix: str,
        initial_counter: int = 1,
        headcount_labels: Mapping[str, str] = HEADCOUNT_LABELS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._default_prefix = default_prefix
        self._initial_counter = initial_counter
        self._headcount_labels = headcount_labels
        self._clock = clock
        self._records: dict[str, ContactRecord] = {}
        self._exports: list[ExportEvent] = []
        self._counter = initial_counter
        self._prefix = default_prefix
        self._start_point: StartPoint | None = None

    @classmethod
    def load(
        cls,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        default_prefix: str,
        initial_counter: int = 1,
        clock: Callable[[], datetime] = utcnow,
    ) -> ContactBook:
        book = cls(
            unit_of_work_factory,
            default_prefix=default_prefix,
            initial_counter=initial_counter,
            clock=clock,
        )
        book.reload()
        return book

    def reload(self) -> None:
        """Replace the snapshot with the stored state."""

        with self._uow_factory() as uow:
            repos = uow.repositories
            records = repos.contacts.list_all()
            exports = repos.exports.list_all()
            counter = repos.config.get(ID_COUNTER_KEY)
            prefix = repos.config.get(ID_PREFIX_KEY)
            start = repos.config.get(START_POINT_KEY)

        self._records = {record.unique_id: record for record in records}
        self._exports = list(exports)
        self._counter = counter if isinstance(counter, int) else self._initial_counter
        self._prefix = prefix if isinstance(prefix, str) and prefix else self._default_prefix
        self._start_point = _start_point_from_json(start)
        log.info(
            "Loaded %s contacts, %s exports (prefix %s, next id counter %s)",
            len(self._records),
            len(self._exports),
            self._prefix,
            self._counter,
        )

    @property
    def records(self) -> tuple[ContactRecord, ...]:
        return tuple(self._records.values())

    @property
    def exports(self) -> tuple[ExportEvent, ...]:
        return tuple(self._exports)

    @property
    def counter(self) -> int:
        return self._counter

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def start_point(self) -> StartPoint | None:
        return self._start_point

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, unique_id: object) -> bool:
        return unique_id in self._records

    def get(self, unique_id: str) -> ContactRecord:
        try:
            return self._records[unique_id]
        except KeyError:
            raise ContactNotFoundError(unique_id) from None

    def select(
        self,
        criteria: ContactFilter | None = None,
        sort: SortKey | None = None,
    ) -> list[ContactRecord]:
        criteria = criteria or ContactFilter()
        selected = criteria.apply(self._records.values(), exports=self._exports)
        return sort_records(selected, sort) if sort is not None else selected

    def stats(self) -> ContactStats:
        return ContactStats.compute(self._records.values())

    def duplicate_ids(self) -> set[str]:
        return phone_duplicate_ids(self._records.values())

    def prepare_import(
        self,
        rows: Sequence[Mapping[str, object]],
        mapping: ColumnMapping,
        source_file: str | None = None,
    ) -> ImportPreview:
        """Build and reconcile ``rows`` without touching the store."""

        builder = RecordBuilder(
            prefix=self._prefix,
            headcount_labels=self._headcount_labels,
            clock=self._clock,
        )
        start = next_free_counter(self._records, self._prefix, self._counter)
        batch = builder.prepare_batch(rows, mapping, source_file, start)
        result = reconcile(self._records.values(), batch.records)
        log.info(
            "Import preview for %s: %s records, %s unique, %s duplicates",
            source_file or "<rows>",
            len(batch.records),
            len(result.unique),
            len(result.duplicates),
        )
        return ImportPreview(source_file=source_file, batch=batch, reconciliation=result)

    def commit_import(self, preview: ImportPreview, mode: MergeMode) -> ImportSummary:
        """Merge a previewed import under ``mode`` and persist it with the id counter."""

        allocator = IdAllocator(
            prefix=self._prefix,
            counter=max(self._counter, preview.next_counter),
            taken={*self._records, *(record.unique_id for record in preview.records)},
        )
        outcome = merge(
            self._records, preview.reconciliation, mode, self._clock(), allocator=allocator
        )
        next_counter = max(self._counter, preview.next_counter, allocator.counter)

        with self._uow_factory() as uow:
            uow.repositories.contacts.put_many(outcome.written)
            uow.repositories.config.set(ID_COUNTER_KEY, next_counter)
            uow.commit()

        self._records.update((record.unique_id, record) for record in outcome.written)
        self._counter = next_counter
        summary = ImportSummary(
            mode=mode,
            added=outcome.added,
            replaced=outcome.replaced,
            skipped=len(preview.records) - len(outcome.written),
            next_counter=next_counter,
        )
        log.info(
            "Imported %s (%s): %s added, %s replaced, %s skipped",
            preview.source_file or "<rows>",
            mode.value,
            summary.added,
            summary.replaced,
            summary.skipped,
        )
        return summary

    def import_rows(
        self,
        rows: Sequence[Mapping[str, object]],
        mapping: ColumnMapping,
        mode: MergeMode = MergeMode.NEW_ONLY,
        source_file: str | None = None,
    ) -> ImportSummary:
        return self.commit_import(self.prepare_import(rows, mapping, source_file), mode)

    def save_records(self, records: Iterable[ContactRecord]) -> int:
        """Persist updated versions of already stored records."""

        pending = list(records)
        for record in pending:
            if record.unique_id not in self._records:
                raise ContactNotFoundError(record.unique_id)
        if not pending:
            return 0

        with self._uow_factory() as uow:
            uow.repositories.contacts.put_many(pending)
            uow.commit()

        self._records.update((record.unique_id, record) for record in pending)
        log.debug("Saved %s updated contacts", len(pending))
        return len(pending)

    def record_export(
        self,
        selected: Sequence[ContactRecord],
        timestamp: datetime | None = None,
    ) -> ExportStamp:
        """Append an export event for ``selected`` and stamp those records."""

        for record in selected:
            if record.unique_id not in self._records:
                raise ContactNotFoundError(record.unique_id)
        stamp = record_export(timestamp or self._clock(), selected)

        with self._uow_factory() as uow:
            event = uow.repositories.exports.append(stamp.event)
            uow.repositories.contacts.put_many(stamp.records)
            uow.commit()

        self._exports.append(event)
        self._records.update((record.unique_id, record) for record in stamp.records)
        log.info("Recorded export #%s of %s contacts", event.id, event.count)
        return ExportStamp(event=event, records=stamp.records)

    def delete(self, unique_id: str) -> None:
        if unique_id not in self._records:
            raise ContactNotFoundError(unique_id)

        with self._uow_factory() as uow:
            uow.repositories.contacts.delete([unique_id])
            uow.commit()

        del self._records[unique_id]
        log.info("Deleted contact %s", unique_id)

    def remove_phone_duplicates(self) -> list[ContactRecord]:
        """Delete every record whose phone numbers were already seen; keep the first."""

        kept, removed = split_phone_duplicates(self._records.values())
        if not removed:
            return []

        with self._uow_factory() as uow:
            uow.repositories.contacts.delete([record.unique_id for record in removed])
            uow.commit()

        self._records = {record.unique_id: record for record in kept}
        log.info("Removed %s phone duplicates", len(removed))
        return removed

    def clear(self) -> None:
        """Delete all contacts and the export log and reset the id counter."""

        with self._uow_factory() as uow:
            uow.repositories.contacts.clear()
            uow.repositories.exports.clear()
            uow.repositories.config.set(ID_COUNTER_KEY, self._initial_counter)
            uow.commit()

        self._records = {}
        self._exports = []
        self._counter = self._initial_counter
        log.warning("Cleared all contacts and the export log")

    def set_prefix(self, prefix: str) -> None:
        cleaned = prefix.strip()
        if not cleaned:
            raise ValueError("Identifier prefix must not be blank")

        with self._uow_factory() as uow:
            uow.repositories.config.set(ID_PREFIX_KEY, cleaned)
            uow.commit()

        self._prefix = cleaned
        log.info("Identifier prefix set to %s", cleaned)

    def set_start_point(self, start: StartPoint) -> None:
        with self._uow_factory() as uow:
            uow.repositories.config.set(START_POINT_KEY, _start_point_to_json(start))
            uow.commit()

        self._start_point = start
        log.info("Start point set to %s (%s)", start.address, start.status)
