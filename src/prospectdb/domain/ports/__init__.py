"""Domain port definitions for adapters."""

from __future__ import annotations

from .enrichment import (
    GeocodeUpdate,
    Geocoder,
    RegistryLookup,
    RegistryUpdate,
    RouteCalculator,
    RouteUpdate,
)
from .persistence import ConfigRepository, ContactRepository, ExportLogRepository
from .spreadsheet import SheetData, SpreadsheetReader, SpreadsheetWriter
from .unit_of_work import (
    ContactBookRepositories,
    ContactBookUnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "ConfigRepository",
    "ContactBookRepositories",
    "ContactBookUnitOfWork",
    "ContactRepository",
    "ExportLogRepository",
    "GeocodeUpdate",
    "Geocoder",
    "RegistryLookup",
    "RegistryUpdate",
    "RouteCalculator",
    "RouteUpdate",
    "SheetData",
    "SpreadsheetReader",
    "SpreadsheetWriter",
    "UnitOfWorkFactory",
]
