"""Result types shared by the reconciliation engine and the merge policies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prospectdb.domain.model import ContactRecord, DuplicateCause


@dataclass(frozen=True, slots=True)
class DuplicateMatch:
    """Candidate that collides with an already known record."""

    record: ContactRecord
    cause: DuplicateCause


@dataclass(slots=True)
class ReconciliationResult:
    """Partition of a candidate batch.

    ``candidates`` keeps the batch in input order; every candidate lands in exactly
    one of ``duplicates`` and ``unique``.
    """

    candidates: list[ContactRecord] = field(default_factory=list["ContactRecord"])
    duplicates: list[DuplicateMatch] = field(default_factory=list["DuplicateMatch"])
    unique: list[ContactRecord] = field(default_factory=list["ContactRecord"])

    def causes(self) -> dict[DuplicateCause, int]:
        counts: dict[DuplicateCause, int] = {}
        for match in self.duplicates:
            counts[match.cause] = counts.get(match.cause, 0) + 1
        return counts


@dataclass(slots=True)
class MergeOutcome:
    """Records written by a merge and how many of them are new to the store."""

    written: list[ContactRecord] = field(default_factory=list["ContactRecord"])
    added: int = 0
    replaced: int = 0
