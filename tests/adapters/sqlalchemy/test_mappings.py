from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import inspect, select, text

from prospectdb.adapters.sqlalchemy.mappings import contact_table, export_table
from prospectdb.domain.model import ContactRecord, ExportEvent, RouteStatus
from tests.helpers.contacts import FIXED_NOW, make_record

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session


def test_tables_and_lookup_indexes_exist(sqlite_engine: Engine) -> None:
    inspector = inspect(sqlite_engine)

    assert {"contacts", "exports", "config"} <= set(inspector.get_table_names())
    indexed = {
        column
        for index in inspector.get_indexes("contacts")
        for column in index["column_names"]
        if column is not None
    }
    assert {"phone", "siret", "postal_code"} <= indexed


def test_status_enums_are_stored_as_values(sqlite_session: Session) -> None:
    sqlite_session.add(make_record("T_00001", route_status=RouteStatus.SUCCESS))
    sqlite_session.commit()

    stored = sqlite_session.execute(
        select(contact_table.c.route_status).where(contact_table.c.unique_id == "T_00001")
    ).scalar_one()
    raw = sqlite_session.execute(text("SELECT route_status FROM contacts")).scalar_one()

    assert stored is RouteStatus.SUCCESS
    assert raw == "success"


def test_contact_ids_are_stored_as_json_list(sqlite_session: Session) -> None:
    sqlite_session.add(ExportEvent(date=FIXED_NOW, count=2, contact_ids=("b", "a")))
    sqlite_session.commit()

    raw = sqlite_session.execute(text("SELECT contact_ids FROM exports")).scalar_one()
    event = sqlite_session.scalars(select(ExportEvent)).one()

    assert raw == '["b", "a"]'
    assert event.contact_ids == ("b", "a")
    assert export_table.c.contact_ids.nullable is False


def test_record_defaults_survive_persistence(sqlite_session: Session) -> None:
    sqlite_session.add(ContactRecord(unique_id="T_00009"))
    sqlite_session.commit()
    sqlite_session.expire_all()

    record = sqlite_session.get(ContactRecord, "T_00009")

    assert record is not None
    assert record.export_count == 0
    assert record.api_enriched is False
    assert record.phones == ()
