"""Ports for persisting contacts, the export log and configuration values."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from prospectdb.domain.model import ContactRecord, ExportEvent


@runtime_checkable
class ContactRepository(Protocol):
    """Keyed store of contact records."""

    def list_all(self) -> list[ContactRecord]: ...

    def get(self, unique_id: str) -> ContactRecord | None: ...

    def put_many(self, records: Iterable[ContactRecord]) -> None:
        """Insert or replace ``records`` by identifier."""
        ...

    def delete(self, unique_ids: Iterable[str]) -> int: ...

    def clear(self) -> None: ...


@runtime_checkable
class ExportLogRepository(Protocol):
    """Append-only export log."""

    def list_all(self) -> list[ExportEvent]: ...

    def append(self, event: ExportEvent) -> ExportEvent:
        """Store ``event`` and return it with its assigned identifier."""
        ...

    def clear(self) -> None: ...


@runtime_checkable
class ConfigRepository(Protocol):
    """String-keyed store of JSON-compatible values."""

    def get(self, key: str) -> object | None: ...

    def set(self, key: str, value: object) -> None: ...

    def clear(self) -> None: ...
