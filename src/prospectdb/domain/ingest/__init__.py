"""Spreadsheet ingest: header resolution, cell normalization and record building."""

from __future__ import annotations

from .builder import (
    BuiltRecord,
    EmptyImportError,
    PreparedBatch,
    IdAllocator,
    RecordBuilder,
    format_unique_id,
    id_counter,
    next_free_counter,
    parse_timestamp,
)
from .normalize import (
    HEADCOUNT_LABELS,
    SMALL_BUSINESS_CODES,
    normalize_phone,
    normalize_postal_code,
    resolve_headcount,
)
from .synonyms import (
    CANONICAL_FIELDS,
    DEFAULT_SYNONYMS,
    ColumnMapping,
    apply_overrides,
    resolve_headers,
)

__all__ = [
    "CANONICAL_FIELDS",
    "DEFAULT_SYNONYMS",
    "HEADCOUNT_LABELS",
    "SMALL_BUSINESS_CODES",
    "BuiltRecord",
    "ColumnMapping",
    "EmptyImportError",
    "IdAllocator",
    "PreparedBatch",
    "RecordBuilder",
    "apply_overrides",
    "format_unique_id",
    "id_counter",
    "next_free_counter",
    "normalize_phone",
    "normalize_postal_code",
    "parse_timestamp",
    "resolve_headcount",
    "resolve_headers",
]
