# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from prospectdb.app import (
    calculate_routes,
    enrich_from_registry,
    export_contacts,
    geocode_records,
    import_file,
    open_contact_book,
    process_all,
    set_start_point,
)
from prospectdb.config import configure_logging
from prospectdb.domain.contact_book import ContactNotFoundError
from prospectdb.domain.ingest import CANONICAL_FIELDS
from prospectdb.domain.model import MergeMode
from prospectdb.domain.selection import ContactFilter, SortKey

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from prospectdb.domain.contact_book import ContactBook
    from prospectdb.domain.enrichment import EnrichmentTask, Progress

log = logging.getLogger(__name__)

_ACTIVE_TASKS: list[EnrichmentTask] = []


def _parse_mapping_override(value: str) -> tuple[str, str | None]:
    field, sep, header = value.partition("=")
    field = field.strip()
    if not sep or not field:
        raise argparse.ArgumentTypeError(f"Expected FIELD=HEADER, got {value!r}")
    if field not in CANONICAL_FIELDS:
        raise argparse.ArgumentTypeError(f"Unknown field {field!r}")
    header = header.strip()
    return field, header or None


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--postal-code", help="Keep postal codes starting with this prefix")
    parser.add_argument("--city", help="Keep cities containing this text")
    parser.add_argument("--category", help="Keep categories containing this text")
    parser.add_argument("--search", help="Match name, SIRET or identifier")
    parser.add_argument(
        "--small-business",
        action="store_true",
        help="Keep companies with fewer than 20 employees",
    )
    parser.add_argument(
        "--max-duration",
        type=float,
        help="Maximum driving time from the start point, in minutes",
    )
    parser.add_argument("--only-new", action="store_true", help="Keep never exported records")
    parser.add_argument("--only-exported", action="store_true", help="Keep exported records")
    parser.add_argument("--export-id", type=int, help="Keep records of this export event")
    parser.add_argument(
        "--duplicates",
        action="store_true",
        help="Keep records sharing a phone number",
    )
    parser.add_argument(
        "--sort",
        choices=[key.value for key in SortKey],
        help="Sort order of the selection",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="prospectdb",
        description="Import, deduplicate, enrich and export prospect contacts",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    importer = subparsers.add_parser("import", help="Import a spreadsheet (.xlsx or .csv)")
    importer.add_argument("path", type=Path, help="File to import")
    importer.add_argument(
        "--mode",
        choices=[mode.value for mode in MergeMode],
        default=MergeMode.NEW_ONLY.value,
        help="new: only unseen records, all: every row, update: merge into existing",
    )
    importer.add_argument(
        "--map",
        dest="overrides",
        action="append",
        type=_parse_mapping_override,
        default=[],
        metavar="FIELD=HEADER",
        help="Override the detected column for FIELD (empty HEADER unmaps it)",
    )
    importer.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the reconciliation without writing anything",
    )

    subparsers.add_parser("enrich", help="Look up companies in the registry")
    subparsers.add_parser("geocode", help="Geocode addresses")
    subparsers.add_parser("routes", help="Compute driving routes from the start point")
    subparsers.add_parser("process", help="Run registry, geocoding and routes in sequence")

    exporter = subparsers.add_parser("export", help="Export a filtered selection to .xlsx")
    exporter.add_argument(
        "--output-dir",
        type=Path,
        default=Path(),
        help="Directory receiving the workbook (default: current directory)",
    )
    _add_filter_arguments(exporter)

    subparsers.add_parser("stats", help="Show record statistics")

    dedupe = subparsers.add_parser("dedupe", help="List or remove phone-number duplicates")
    dedupe.add_argument(
        "--remove",
        action="store_true",
        help="Delete duplicates, keeping the first record of each group",
    )

    delete = subparsers.add_parser("delete", help="Delete one record")
    delete.add_argument("unique_id", help="Identifier of the record")

    clear = subparsers.add_parser("clear", help="Delete all records and the export log")
    clear.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    prefix = subparsers.add_parser("prefix", help="Show or change the identifier prefix")
    prefix.add_argument("value", nargs="?", help="New prefix")

    start = subparsers.add_parser("start-point", help="Show or set the route start point")
    start.add_argument("address", nargs="?", help="Address to geocode")

    return parser.parse_args(list(argv))


def _build_filter(args: argparse.Namespace) -> ContactFilter:
    if args.max_duration is not None and args.max_duration < 0:
        raise ValueError("--max-duration must be non-negative")
    return ContactFilter(
        postal_code=args.postal_code,
        city=args.city,
        category=args.category,
        search=args.search,
        only_small_business=args.small_business,
        max_duration_minutes=args.max_duration,
        only_new=args.only_new,
        only_exported=args.only_exported,
        export_id=args.export_id,
        only_duplicates=args.duplicates,
    )


def _log_progress(progress: Progress) -> None:
    if progress.current == progress.total or progress.current % 25 == 0:
        log.info("%s: %s/%s", progress.kind.value, progress.current, progress.total)


def _track_task(task: EnrichmentTask) -> None:
    _ACTIVE_TASKS[:] = [task]


def _run_enrichment(book: ContactBook, runner: Callable[..., object]) -> None:
    try:
        runner(book, on_progress=_log_progress, on_task=_track_task)
    finally:
        _ACTIVE_TASKS.clear()


def _confirm(prompt: str) -> bool:
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes", "o", "oui"}


def _print_stats(book: ContactBook) -> None:
    stats = book.stats()
    print(f"Total:           {stats.total}")
    print(f"Enriched:        {stats.enriched}")
    print(f"Small business:  {stats.small_business}")
    print(f"Geocoded:        {stats.geocoded}")
    print(f"With routes:     {stats.with_routes}")
    print(f"Under 30 min:    {stats.under_30_minutes}")
    print(f"Never exported:  {stats.never_exported}")
    print(f"Exports:         {len(book.exports)}")


def _dispatch(args: argparse.Namespace, book: ContactBook) -> None:  # noqa: C901, PLR0912
    command = args.command
    if command == "import":
        outcome = import_file(
            book,
            args.path,
            mode=MergeMode(args.mode),
            overrides=dict(args.overrides),
            dry_run=args.dry_run,
        )
        preview = outcome.preview
        print(
            f"{len(preview.records)} records, {len(preview.unique)} new, "
            f"{len(preview.duplicates)} duplicates"
        )
        for cause, count in sorted(preview.reconciliation.causes().items()):
            print(f"  duplicates by {cause.value}: {count}")
        if outcome.summary is not None:
            summary = outcome.summary
            print(
                f"Imported ({summary.mode.value}): {summary.added} added, "
                f"{summary.replaced} replaced, {summary.skipped} skipped"
            )
    elif command == "enrich":
        _run_enrichment(book, enrich_from_registry)
    elif command == "geocode":
        _run_enrichment(book, geocode_records)
    elif command == "routes":
        _run_enrichment(book, calculate_routes)
    elif command == "process":
        _run_enrichment(book, process_all)
    elif command == "export":
        sort = SortKey(args.sort) if args.sort else None
        exported = export_contacts(
            book,
            criteria=_build_filter(args),
            sort=sort,
            output_dir=args.output_dir,
        )
        print(f"Exported {exported.stamp.event.count} contacts to {exported.path}")
    elif command == "stats":
        _print_stats(book)
    elif command == "dedupe":
        if args.remove:
            removed = book.remove_phone_duplicates()
            print(f"Removed {len(removed)} duplicates")
        else:
            for record in book.select(ContactFilter(only_duplicates=True)):
                phones = ", ".join(record.phones)
                print(f"{record.unique_id}\t{record.name or ''}\t{phones}")
    elif command == "delete":
        book.delete(args.unique_id)
        print(f"Deleted {args.unique_id}")
    elif command == "clear":
        if not args.yes and not _confirm("Delete ALL contacts and the export log?"):
            print("Aborted")
            return
        book.clear()
        print("All data cleared")
    elif command == "prefix":
        if args.value is None:
            print(book.prefix)
        else:
            book.set_prefix(args.value)
            print(f"Prefix set to {book.prefix}")
    elif command == "start-point":
        if args.address is None:
            start = book.start_point
            if start is None:
                print("No start point")
            else:
                print(f"{start.address} ({start.lat}, {start.lon})")
        else:
            start = set_start_point(book, args.address)
            print(f"Start point: {start.address} ({start.status}, {start.lat}, {start.lon})")
    else:
        raise ValueError(f"Unsupported command: {command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        book = open_contact_book()
        _dispatch(parsed_args, book)
    except (ValueError, ContactNotFoundError):
        log.exception("Invalid request")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Cancel a running enrichment pass on the first Ctrl+C; exit on the next."""
    for task in _ACTIVE_TASKS:
        if not task.cancelled:
            log.info("Cancelling after the current record (Ctrl+C again to quit)")
            task.cancel()
            return
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
