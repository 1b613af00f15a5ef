"""Transaction boundary shared by every contact book write."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from prospectdb.domain.ports.persistence import (
        ConfigRepository,
        ContactRepository,
        ExportLogRepository,
    )


@dataclass(slots=True)
class ContactBookRepositories:
    contacts: ContactRepository
    exports: ExportLogRepository
    config: ConfigRepository


@runtime_checkable
class ContactBookUnitOfWork(Protocol):
    """Repositories bound to one transaction.

    Leaving the context without ``commit()`` discards the work; leaving it on an
    exception rolls back.
    """

    @property
    def repositories(self) -> ContactBookRepositories: ...

    def __enter__(self) -> ContactBookUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


type UnitOfWorkFactory = Callable[[], ContactBookUnitOfWork]
