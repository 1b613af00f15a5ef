"""Merge policies applied when an import is confirmed."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prospectdb.domain.model import FIELD_NAMES, ApiStatus, GeoStatus, MergeMode

from .contracts import MergeOutcome

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from prospectdb.domain.ingest import IdAllocator
    from prospectdb.domain.model import ContactRecord

    from .contracts import ReconciliationResult

log = logging.getLogger(__name__)

_MANAGED_FIELDS = frozenset(
    {
        "unique_id",
        "api_enriched",
        "created_at",
        "updated_at",
        "last_exported_at",
        "export_count",
    }
)
_STATUS_FIELDS = frozenset({"api_status", "geo_status"})


def _latest(first: datetime | None, second: datetime | None) -> datetime | None:
    if first is None:
        return second
    if second is None:
        return first
    return max(first, second)


def merge_record(existing: ContactRecord, candidate: ContactRecord, now: datetime) -> ContactRecord:
    """Lay ``candidate`` over ``existing``.

    Non-empty candidate values win. Creation date and identifier stay, export
    metadata never moves backwards and an ``imported`` status does not hide a status
    obtained from a provider.
    """

    changes: dict[str, object] = {}
    for name in FIELD_NAMES:
        if name in _MANAGED_FIELDS:
            continue
        value = getattr(candidate, name)
        if value is None:
            continue
        imported = value in (ApiStatus.IMPORTED, GeoStatus.IMPORTED)
        if name in _STATUS_FIELDS and imported and getattr(existing, name) is not None:
            continue
        changes[name] = value

    return existing.evolve(
        **changes,
        api_enriched=existing.api_enriched or candidate.api_enriched,
        created_at=existing.created_at or candidate.created_at,
        updated_at=now,
        last_exported_at=_latest(existing.last_exported_at, candidate.last_exported_at),
        export_count=max(existing.export_count, candidate.export_count),
    )


def merge(
    existing: Mapping[str, ContactRecord],
    result: ReconciliationResult,
    mode: MergeMode,
    now: datetime,
    *,
    allocator: IdAllocator | None = None,
) -> MergeOutcome:
    """Decide which records an import writes under ``mode``.

    ``new`` writes unique candidates only. ``all`` appends every candidate; one
    whose identifier is already taken is appended under a fresh identifier from
    ``allocator``. ``update`` upserts every candidate, merging it over the stored
    record when one exists, and is the only mode that changes stored records.
    """

    outcome = MergeOutcome()
    if mode is MergeMode.NEW_ONLY:
        outcome.written = list(result.unique)
        outcome.added = len(outcome.written)
    elif mode is MergeMode.ALL:
        appended: dict[str, ContactRecord] = {}
        for record in result.candidates:
            if record.unique_id in existing or record.unique_id in appended:
                if allocator is None:
                    msg = f"Identifier {record.unique_id!r} is taken; pass an allocator"
                    raise ValueError(msg)
                fresh = allocator.allocate()
                log.info("Appending %s as %s", record.unique_id, fresh)
                record = record.evolve(unique_id=fresh)  # noqa: PLW2901
            appended[record.unique_id] = record
        outcome.written = list(appended.values())
        outcome.added = len(outcome.written)
    elif mode is MergeMode.UPDATE:
        merged: dict[str, ContactRecord] = {}
        for record in result.candidates:
            base = merged.get(record.unique_id) or existing.get(record.unique_id)
            merged[record.unique_id] = record if base is None else merge_record(base, record, now)
        outcome.written = list(merged.values())
        outcome.replaced = sum(1 for uid in merged if uid in existing)
        outcome.added = len(merged) - outcome.replaced
    else:  # pragma: no cover - exhaustive over MergeMode
        raise ValueError(f"Unsupported merge mode: {mode!r}")

    log.info(
        "Merge (%s): %s records written, %s added, %s replaced",
        mode.value,
        len(outcome.written),
        outcome.added,
        outcome.replaced,
    )
    return outcome
