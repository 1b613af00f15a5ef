"""Classify import candidates against the known record set."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from prospectdb.domain.model import DuplicateCause

from .contracts import DuplicateMatch, ReconciliationResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prospectdb.domain.model import ContactRecord

log = logging.getLogger(__name__)


@dataclass(slots=True)
class _KnownKeys:
    ids: set[str] = field(default_factory=set[str])
    sirets: set[str] = field(default_factory=set[str])
    phones: set[str] = field(default_factory=set[str])

    @classmethod
    def from_records(cls, records: Iterable[ContactRecord]) -> _KnownKeys:
        keys = cls()
        for record in records:
            keys.add(record)
        return keys

    def add(self, record: ContactRecord) -> None:
        self.ids.add(record.unique_id)
        if record.siret:
            self.sirets.add(record.siret)
        # phone2 is not an identity key
        for phone in (record.phone, record.mobile):
            if phone:
                self.phones.add(phone)

    def cause_for(self, record: ContactRecord) -> DuplicateCause | None:
        if record.unique_id in self.ids:
            return DuplicateCause.ID
        if record.siret and record.siret in self.sirets:
            return DuplicateCause.SIRET
        if (record.phone and record.phone in self.phones) or (
            record.mobile and record.mobile in self.phones
        ):
            return DuplicateCause.PHONE
        return None


def reconcile(
    existing: Iterable[ContactRecord],
    candidates: Iterable[ContactRecord],
) -> ReconciliationResult:
    """Partition ``candidates`` into duplicates of known records and unique records.

    Cause precedence is identifier, then SIRET, then phone. A unique candidate is
    folded into the known keys so later candidates of the same batch collide with it.
    """

    known = _KnownKeys.from_records(existing)
    result = ReconciliationResult()
    for record in candidates:
        result.candidates.append(record)
        cause = known.cause_for(record)
        if cause is None:
            result.unique.append(record)
            known.add(record)
        else:
            result.duplicates.append(DuplicateMatch(record=record, cause=cause))

    log.debug(
        "Reconciled %s candidates: %s unique, %s duplicates",
        len(result.candidates),
        len(result.unique),
        len(result.duplicates),
    )
    return result
