"""Controllers for catalog record CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from catalog_workers.catalog.models import ProductRecord
from catalog_workers.catalog.repository import RecordRepository
from catalog_workers.config import Settings


@dataclass(slots=True)
class DbInitCommand:
    """CLI input for schema migration."""

    db_path: Path | None


@dataclass(slots=True)
class RecordAddCommand:
    """CLI input for record creation."""

    db_path: Path | None
    catalog: str
    code: str
    name: str
    description: str


@dataclass(slots=True)
class RecordShowCommand:
    """CLI input for record lookup by id or code."""

    db_path: Path | None
    catalog: str
    record_id: int | None
    code: str | None


@dataclass(slots=True)
class RecordDeleteCommand:
    """CLI input for record deletion by code."""

    db_path: Path | None
    catalog: str
    code: str


@dataclass(slots=True)
class RecordListCommand:
    """CLI input for record listing."""

    db_path: Path | None
    catalog: str
    limit: int


class RecordsCliController:
    """Operator access to catalog records through the worker record store."""

    def init_db(self, command: DbInitCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings, catalog="chart"):
            pass
        return [f"Schema is up to date: {settings.store.db_path}"]

    def add(self, command: RecordAddCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings, catalog=command.catalog) as repository:
            saved = repository.save(
                ProductRecord(
                    code=command.code,
                    name=command.name,
                    description=command.description,
                ),
            )
        return [f"Created {command.catalog} record: {_format_record(saved)}"]

    def show(self, command: RecordShowCommand) -> list[str]:
        if (command.record_id is None) == (command.code is None):
            raise ValueError("Pass exactly one of --id or --code.")
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings, catalog=command.catalog) as repository:
            record = (
                repository.get_by_id(command.record_id)
                if command.record_id is not None
                else repository.get_by_code(command.code or "")
            )
        if record is None:
            return [f"No {command.catalog} record found."]
        return [_format_record(record)]

    def delete(self, command: RecordDeleteCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings, catalog=command.catalog) as repository:
            record = repository.get_by_code(command.code)
            if record is None:
                return [f"No {command.catalog} record with code {command.code!r}."]
            repository.delete(record)
        return [f"Deleted {command.catalog} record: {_format_record(record)}"]

    def list_records(self, command: RecordListCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings, catalog=command.catalog) as repository:
            records = repository.list_records(limit=command.limit)
        if not records:
            return [f"No {command.catalog} records."]
        return [_format_record(record) for record in records]


def _format_record(record: ProductRecord) -> str:
    return (
        f"id={record.id} code={record.code} name={record.name!r} "
        f"description={record.description!r}"
    )


@contextmanager
def _repository(settings: Settings, *, catalog: str) -> Iterator[RecordRepository]:
    repository = RecordRepository(
        settings.store.db_path,
        catalog=catalog,
        sqlite_busy_timeout_ms=settings.store.busy_timeout_ms,
    )
    repository.init_schema()
    try:
        yield repository
    finally:
        repository.close()
