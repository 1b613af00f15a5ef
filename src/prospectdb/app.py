"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from prospectdb.adapters.geocoding import GeocodingClient
from prospectdb.adapters.registry import RegistryClient
from prospectdb.adapters.routing import RoutingClient
from prospectdb.adapters.spreadsheet import read_spreadsheet, write_spreadsheet
from prospectdb.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from prospectdb.config import get_contacts_config, get_providers_config
from prospectdb.domain.contact_book import ContactBook
from prospectdb.domain.enrichment import (
    EnrichmentResult,
    geocoding_task,
    registry_task,
    routing_task,
    select_for_geocoding,
    select_for_registry,
    select_for_routes,
)
from prospectdb.domain.export_ledger import EXPORT_COLUMNS, export_filename, export_rows
from prospectdb.domain.ingest import apply_overrides, resolve_headers
from prospectdb.domain.model import EnrichmentKind, MergeMode, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from datetime import datetime

    from prospectdb.adapters.http_resilience import ClientFactory, ProviderClient
    from prospectdb.config import ContactsConfig, ProvidersConfig
    from prospectdb.domain.contact_book import ImportPreview, ImportSummary
    from prospectdb.domain.enrichment import EnrichmentTask, ProgressListener
    from prospectdb.domain.export_ledger import ExportStamp
    from prospectdb.domain.ingest import ColumnMapping
    from prospectdb.domain.model import ContactRecord, StartPoint
    from prospectdb.domain.ports import (
        SheetData,
        SpreadsheetReader,
        SpreadsheetWriter,
        UnitOfWorkFactory,
    )
    from prospectdb.domain.selection import ContactFilter, SortKey

type TaskHook = Callable[[EnrichmentTask], None]

log = getLogger(__name__)


def open_contact_book(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    contacts_config: ContactsConfig | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> ContactBook:
    """Load the contact book from the configured store."""

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyUnitOfWork
    config = contacts_config or get_contacts_config()
    return ContactBook.load(
        unit_of_work_factory,
        default_prefix=config.default_id_prefix,
        initial_counter=config.initial_id_counter,
        clock=clock,
    )


@dataclass(slots=True)
class ImportOutcome:
    sheet: SheetData
    mapping: ColumnMapping
    preview: ImportPreview
    summary: ImportSummary | None = None


def read_import_file(
    path: Path,
    overrides: Mapping[str, str | None] | None = None,
    *,
    reader: SpreadsheetReader = read_spreadsheet,
) -> tuple[SheetData, ColumnMapping]:
    """Read ``path`` and resolve its headers, applying user overrides."""

    sheet = reader(path)
    mapping = resolve_headers(sheet.headers)
    if overrides:
        mapping = apply_overrides(mapping, overrides, headers=sheet.headers)
    log.info(
        "Column mapping for %s: %s",
        path.name,
        ", ".join(f"{field}={header}" for field, header in mapping.items() if header),
    )
    return sheet, mapping


def import_file(
    book: ContactBook,
    path: Path,
    *,
    mode: MergeMode = MergeMode.NEW_ONLY,
    overrides: Mapping[str, str | None] | None = None,
    dry_run: bool = False,
    reader: SpreadsheetReader = read_spreadsheet,
) -> ImportOutcome:
    sheet, mapping = read_import_file(path, overrides, reader=reader)
    preview = book.prepare_import(sheet.rows, mapping, source_file=path.name)
    outcome = ImportOutcome(sheet=sheet, mapping=mapping, preview=preview)
    if dry_run:
        log.info("Dry run: nothing written for %s", path.name)
        return outcome
    outcome.summary = book.commit_import(preview, mode)
    return outcome


async def _run_pass(
    client: ProviderClient,
    task: EnrichmentTask,
    records: Sequence[ContactRecord],
    *,
    on_progress: ProgressListener | None,
    on_task: TaskHook | None,
) -> EnrichmentResult:
    if on_progress is not None:
        task.subscribe(on_progress)
    if on_task is not None:
        on_task(task)
    async with client:
        return await task.run(records)


def _finish_pass(book: ContactBook, result: EnrichmentResult) -> EnrichmentResult:
    saved = book.save_records(result.updated)
    log.info(
        "%s pass stored %s of %s records%s",
        result.kind.value,
        saved,
        result.total,
        " (cancelled)" if result.cancelled else "",
    )
    return result


def enrich_from_registry(
    book: ContactBook,
    *,
    providers: ProvidersConfig | None = None,
    client_factory: ClientFactory | None = None,
    on_progress: ProgressListener | None = None,
    on_task: TaskHook | None = None,
) -> EnrichmentResult:
    """Look up every record not yet enriched, or whose last lookup failed."""

    records = select_for_registry(book.records)
    if not records:
        log.info("No records need a registry lookup")
        return EnrichmentResult(kind=EnrichmentKind.REGISTRY, total=0)
    config = (providers or get_providers_config()).registry
    client = RegistryClient(config=config.resilience, client_factory=client_factory)
    task = registry_task(client, delay_seconds=config.delay_seconds)
    result = asyncio.run(
        _run_pass(client, task, records, on_progress=on_progress, on_task=on_task)
    )
    return _finish_pass(book, result)


def geocode_records(
    book: ContactBook,
    *,
    providers: ProvidersConfig | None = None,
    client_factory: ClientFactory | None = None,
    on_progress: ProgressListener | None = None,
    on_task: TaskHook | None = None,
) -> EnrichmentResult:
    """Geocode every record without coordinates that has an address or postal code."""

    records = select_for_geocoding(book.records)
    if not records:
        log.info("No records need geocoding")
        return EnrichmentResult(kind=EnrichmentKind.GEOCODING, total=0)
    config = (providers or get_providers_config()).geocoding
    client = GeocodingClient(config=config.resilience, client_factory=client_factory)
    task = geocoding_task(client, delay_seconds=config.delay_seconds)
    result = asyncio.run(
        _run_pass(client, task, records, on_progress=on_progress, on_task=on_task)
    )
    return _finish_pass(book, result)


def calculate_routes(
    book: ContactBook,
    *,
    providers: ProvidersConfig | None = None,
    client_factory: ClientFactory | None = None,
    on_progress: ProgressListener | None = None,
    on_task: TaskHook | None = None,
) -> EnrichmentResult:
    """Compute the route from the start point to every geocoded record without one."""

    start = book.start_point
    if start is None or not start.is_located:
        raise ValueError("Set a geocoded start point before calculating routes")
    records = select_for_routes(book.records)
    if not records:
        log.info("No records need a route")
        return EnrichmentResult(kind=EnrichmentKind.ROUTING, total=0)
    config = (providers or get_providers_config()).routing
    client = RoutingClient(config=config.resilience, client_factory=client_factory)
    task = routing_task(client, start, delay_seconds=config.delay_seconds)
    result = asyncio.run(
        _run_pass(client, task, records, on_progress=on_progress, on_task=on_task)
    )
    return _finish_pass(book, result)


def process_all(
    book: ContactBook,
    *,
    providers: ProvidersConfig | None = None,
    client_factory: ClientFactory | None = None,
    on_progress: ProgressListener | None = None,
    on_task: TaskHook | None = None,
) -> list[EnrichmentResult]:
    """Registry, then geocoding, then routes when the start point is geocoded."""

    effective = providers or get_providers_config()
    passes = [enrich_from_registry, geocode_records]
    start = book.start_point
    if start is not None and start.is_located:
        passes.append(calculate_routes)
    else:
        log.info("Skipping routes: no geocoded start point")

    results: list[EnrichmentResult] = []
    for run_pass in passes:
        result = run_pass(
            book,
            providers=effective,
            client_factory=client_factory,
            on_progress=on_progress,
            on_task=on_task,
        )
        results.append(result)
        if result.cancelled:
            break
    return results


def set_start_point(
    book: ContactBook,
    address: str,
    *,
    providers: ProvidersConfig | None = None,
    client_factory: ClientFactory | None = None,
) -> StartPoint:
    """Geocode ``address`` and store it as the route origin."""

    if not address.strip():
        raise ValueError("Start point address must not be blank")
    config = (providers or get_providers_config()).geocoding

    async def locate() -> StartPoint:
        client = GeocodingClient(config=config.resilience, client_factory=client_factory)
        async with client:
            return await client.locate_start_point(address)

    start = asyncio.run(locate())
    book.set_start_point(start)
    return start


@dataclass(frozen=True, slots=True)
class ExportOutcome:
    path: Path
    stamp: ExportStamp


def export_contacts(
    book: ContactBook,
    *,
    criteria: ContactFilter | None = None,
    sort: SortKey | None = None,
    output_dir: Path = Path(),
    clock: Callable[[], datetime] = utcnow,
    writer: SpreadsheetWriter = write_spreadsheet,
) -> ExportOutcome:
    """Write the selected records to a workbook, then log the export and stamp them."""

    selected = book.select(criteria, sort)
    if not selected:
        raise ValueError("No contacts match the export filters")
    timestamp = clock()
    path = output_dir / export_filename(timestamp, len(selected))
    writer(path, export_rows(selected), columns=EXPORT_COLUMNS)
    stamp = book.record_export(selected, timestamp)
    log.info("Exported %s contacts to %s", len(selected), path)
    return ExportOutcome(path=path, stamp=stamp)
