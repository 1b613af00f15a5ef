"""Import reconciliation: duplicate classification and merge policies."""

from __future__ import annotations

from .contracts import DuplicateMatch, MergeOutcome, ReconciliationResult
from .engine import reconcile
from .policy import merge, merge_record

__all__ = [
    "DuplicateMatch",
    "MergeOutcome",
    "ReconciliationResult",
    "merge",
    "merge_record",
    "reconcile",
]
