"""SQLAlchemy mapping metadata for the contact book."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from enum import StrEnum
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    orm,
)

from prospectdb.domain.model import (
    ApiStatus,
    ContactRecord,
    ExportEvent,
    GeoStatus,
    RouteStatus,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class IdListType(TypeDecorator[tuple[str, ...]]):
    """Ordered identifier list stored as a JSON array."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: tuple[str, ...] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(list(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> tuple[str, ...]:
        _ = dialect
        if value is None:
            return ()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return ()
        items = cast(list[Any], loaded)
        return tuple(str(item) for item in items)


def _status_enum(enum_cls: type[StrEnum]) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        length=16,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

contact_table = Table(
    "contacts",
    mapper_registry.metadata,
    Column("unique_id", String(64), primary_key=True),
    Column("name", String),
    Column("address", String),
    Column("postal_code", String(5)),
    Column("city", String),
    Column("phone", String(10)),
    Column("mobile", String(10)),
    Column("phone2", String(10)),
    Column("email", String),
    Column("website", String),
    Column("category", String),
    Column("siret", String(14)),
    Column("siren", String(9)),
    Column("naf", String),
    Column("legal_form", String),
    Column("capital", String),
    Column("department", String),
    Column("region", String),
    Column("description", Text),
    Column("services", Text),
    Column("api_enriched", Boolean, nullable=False, default=False),
    Column("api_status", _status_enum(ApiStatus)),
    Column("api_effectif_code", String(8)),
    Column("api_effectif_label", String),
    Column("api_naf", String),
    Column("api_date_creation", String),
    Column("api_dirigeants", Text),
    Column("lat", Float),
    Column("lon", Float),
    Column("geo_status", _status_enum(GeoStatus)),
    Column("distance_meters", Float),
    Column("duration_seconds", Float),
    Column("route_status", _status_enum(RouteStatus)),
    Column("source_file", String),
    Column("created_at", UTCDateTime()),
    Column("updated_at", UTCDateTime()),
    Column("last_exported_at", UTCDateTime()),
    Column("export_count", Integer, nullable=False, default=0),
    Index(None, "phone"),
    Index(None, "siret"),
    Index(None, "postal_code"),
)

export_table = Table(
    "exports",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("date", UTCDateTime(), nullable=False),
    Column("count", Integer, nullable=False),
    Column("contact_ids", IdListType(), nullable=False),
)

config_table = Table(
    "config",
    mapper_registry.metadata,
    Column("key", String(64), primary_key=True),
    Column("value", JSON),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(ContactRecord, contact_table)
    mapper_registry.map_imperatively(ExportEvent, export_table)
    orm.configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
