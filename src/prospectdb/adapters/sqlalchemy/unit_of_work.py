"""SQLAlchemy-backed unit of work for the contact book."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from prospectdb.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from prospectdb.adapters.sqlalchemy.repositories import (
    SqlAlchemyConfigRepository,
    SqlAlchemyContactRepository,
    SqlAlchemyExportLogRepository,
)
from prospectdb.config import get_database_config
from prospectdb.domain.ports.unit_of_work import ContactBookRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when the store is used before ``startup()`` or a session is misused."""


@dataclass(slots=True)
class _StoreState:
    engine: Engine | None = None
    session_factory: sessionmaker[Session] | None = None


_STATE = _StoreState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the store to ``engine`` (or a new one), creating missing tables."""

    if _STATE.engine is not None and not force:
        raise StartupError("Store already started. Pass force=True to rebind it.")

    bound = engine or create_engine(database_uri or get_database_config().uri, future=True)
    start_mappers()
    create_all_tables(bound)
    _STATE.engine = bound
    _STATE.session_factory = sessionmaker(bind=bound, expire_on_commit=False)


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the engine and forget it; ``startup()`` may be called again."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.session_factory = None


class SqlAlchemyUnitOfWork:
    """One session per ``with`` block over contacts, the export log and config."""

    def __init__(self) -> None:
        if _STATE.session_factory is None:
            raise StartupError(
                "Store not started. Call prospectdb.adapters.sqlalchemy.startup() first."
            )
        self._session_factory = _STATE.session_factory
        self._session: Session | None = None
        self._repositories: ContactBookRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work already open")
        session = self._session_factory()
        self._session = session
        self._repositories = ContactBookRepositories(
            contacts=SqlAlchemyContactRepository(session),
            exports=SqlAlchemyExportLogRepository(session),
            config=SqlAlchemyConfigRepository(session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> ContactBookRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from prospectdb.domain.ports.unit_of_work import ContactBookUnitOfWork

    _uow_check: ContactBookUnitOfWork = SqlAlchemyUnitOfWork()
