"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select, update

from prospectdb.adapters.sqlalchemy.mappings import config_table, contact_table, export_table
from prospectdb.domain.model import ContactRecord, ExportEvent

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.orm import Session


class SqlAlchemyContactRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_all(self) -> list[ContactRecord]:
        stmt = select(ContactRecord).order_by(
            contact_table.c.created_at,
            contact_table.c.unique_id,
        )
        return list(self.session.scalars(stmt))

    def get(self, unique_id: str) -> ContactRecord | None:
        return self.session.get(ContactRecord, unique_id)

    def put_many(self, records: Iterable[ContactRecord]) -> None:
        for record in records:
            self.session.merge(record)
        self.session.flush()

    def delete(self, unique_ids: Iterable[str]) -> int:
        ids = list(unique_ids)
        if not ids:
            return 0
        result = self.session.execute(
            delete(contact_table).where(contact_table.c.unique_id.in_(ids))
        )
        self.session.expunge_all()
        return result.rowcount or 0

    def clear(self) -> None:
        self.session.execute(delete(contact_table))
        self.session.expunge_all()


class SqlAlchemyExportLogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_all(self) -> list[ExportEvent]:
        stmt = select(ExportEvent).order_by(export_table.c.id)
        return list(self.session.scalars(stmt))

    def append(self, event: ExportEvent) -> ExportEvent:
        if event.id is not None:
            raise ValueError(f"Export event already stored with id {event.id}")
        self.session.add(event)
        self.session.flush()
        return event

    def clear(self) -> None:
        self.session.execute(delete(export_table))


class SqlAlchemyConfigRepository:
    """Key/value configuration rows; values are stored as JSON."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _exists(self, key: str) -> bool:
        stmt = select(config_table.c.key).where(config_table.c.key == key)
        return self.session.execute(stmt).scalar_one_or_none() is not None

    def get(self, key: str) -> object | None:
        stmt = select(config_table.c.value).where(config_table.c.key == key)
        return self.session.execute(stmt).scalar_one_or_none()

    def set(self, key: str, value: object) -> None:
        if self._exists(key):
            self.session.execute(
                update(config_table).where(config_table.c.key == key).values(value=value)
            )
        else:
            self.session.execute(insert(config_table).values(key=key, value=value))

    def clear(self) -> None:
        self.session.execute(delete(config_table))
