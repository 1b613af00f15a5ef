"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ApiStatus(StrEnum):
    """Outcome of the company-registry lookup for a record."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"
    NO_DATA = "no_data"
    IMPORTED = "imported"


class GeoStatus(StrEnum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"
    NO_DATA = "no_data"
    IMPORTED = "imported"


class RouteStatus(StrEnum):
    SUCCESS = "success"
    ERROR = "error"


class DuplicateCause(StrEnum):
    """Why a candidate record was classified as a duplicate of a stored one."""

    ID = "ID"
    SIRET = "SIRET"
    PHONE = "Phone"


class MergeMode(StrEnum):
    NEW_ONLY = "new"
    ALL = "all"
    UPDATE = "update"


class EnrichmentKind(StrEnum):
    REGISTRY = "registry"
    GEOCODING = "geocoding"
    ROUTING = "routing"
