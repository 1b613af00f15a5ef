"""Ports for reading and writing spreadsheet files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


@dataclass(slots=True)
class SheetData:
    """Header row plus the data rows keyed by header."""

    headers: list[str]
    rows: list[dict[str, object]] = field(default_factory=list[dict[str, object]])


@runtime_checkable
class SpreadsheetReader(Protocol):
    def __call__(self, path: Path) -> SheetData: ...


@runtime_checkable
class SpreadsheetWriter(Protocol):
    def __call__(
        self,
        path: Path,
        rows: Sequence[dict[str, object]],
        *,
        columns: Sequence[str],
        sheet_name: str = "Export",
    ) -> Path: ...
