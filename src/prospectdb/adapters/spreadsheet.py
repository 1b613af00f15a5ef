"""Spreadsheet codec: ``.xlsx`` through openpyxl and ``.csv`` through the csv module."""

from __future__ import annotations

import csv
import logging
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING, Final

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from prospectdb.domain.ports import SheetData

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

log = logging.getLogger(__name__)

EXCEL_SUFFIXES: Final = frozenset({".xlsx", ".xlsm"})
CSV_SUFFIXES: Final = frozenset({".csv", ".txt"})
_SNIFF_BYTES: Final = 8192


class SpreadsheetReadError(ValueError):
    """Raised when an import file cannot be read as a table."""


def _header_names(raw: Sequence[object]) -> list[str]:
    headers: list[str] = []
    for index, value in enumerate(raw, start=1):
        name = "" if value is None else str(value).strip()
        headers.append(name or f"Column {index}")
    return headers


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _rows_from_table(table: Iterable[Sequence[object]]) -> SheetData:
    iterator = iter(table)
    try:
        first = next(iterator)
    except StopIteration:
        return SheetData(headers=[])
    headers = _header_names(first)
    rows: list[dict[str, object]] = []
    for raw in iterator:
        if all(_is_blank(value) for value in raw):
            continue
        padded = list(raw) + [None] * (len(headers) - len(raw))
        rows.append(dict(zip(headers, padded, strict=False)))
    return SheetData(headers=headers, rows=rows)


def _read_excel(path: Path) -> SheetData:
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError) as exc:
        raise SpreadsheetReadError(f"Cannot open workbook {path}: {exc}") from exc
    try:
        sheet = workbook.active
        if sheet is None:
            raise SpreadsheetReadError(f"Workbook {path} has no worksheet")
        return _rows_from_table(sheet.iter_rows(values_only=True))
    finally:
        workbook.close()


def _read_csv(path: Path) -> SheetData:
    try:
        with path.open(newline="", encoding="utf-8-sig") as handle:
            sample = handle.read(_SNIFF_BYTES)
            handle.seek(0)
            try:
                dialect: type[csv.Dialect] | csv.Dialect = csv.Sniffer().sniff(
                    sample, delimiters=";,\t"
                )
            except csv.Error:
                dialect = csv.excel
            return _rows_from_table(csv.reader(handle, dialect))
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise SpreadsheetReadError(f"Cannot read CSV file {path}: {exc}") from exc


def read_spreadsheet(path: Path) -> SheetData:
    """Read the first sheet of ``path``; the first row holds the headers."""

    suffix = path.suffix.lower()
    if suffix in EXCEL_SUFFIXES:
        data = _read_excel(path)
    elif suffix in CSV_SUFFIXES:
        data = _read_csv(path)
    else:
        raise SpreadsheetReadError(f"Unsupported spreadsheet format: {path.name}")
    log.info("Read %s rows with %s columns from %s", len(data.rows), len(data.headers), path.name)
    return data


def write_spreadsheet(
    path: Path,
    rows: Sequence[dict[str, object]],
    *,
    columns: Sequence[str],
    sheet_name: str = "Export",
) -> Path:
    """Write ``rows`` to an ``.xlsx`` workbook with ``columns`` as header row."""

    workbook = Workbook()
    sheet = workbook.active
    if sheet is None:  # pragma: no cover - a new workbook always has one sheet
        sheet = workbook.create_sheet()
    sheet.title = sheet_name
    sheet.append(list(columns))
    for row in rows:
        sheet.append([_cell_value(row.get(column)) for column in columns])
    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)
    log.info("Wrote %s rows to %s", len(rows), path)
    return path


def _cell_value(value: object) -> object:
    if value is None:
        return None
    if isinstance(value, str | int | float | bool):
        return value
    return str(value)
