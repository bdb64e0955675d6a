"""Record store backed by SQLModel + SQLite."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from catalog_workers.catalog.models import ProductRecord
from catalog_workers.storage.database import migrate, open_engine, utc_now
from catalog_workers.storage.sqlmodel_models import (
    CATALOG_TABLES,
    ProductChart,
    ProductPurchase,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StoreError(Exception):
    """Base record store error (connectivity or constraint failure)."""

    message: str
    code: str = "store_error"

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class DuplicateRecordError(StoreError):
    """Unique business code already taken."""

    record_code: str | None = None


class RecordStore(Protocol):
    """Operations task handlers need from a record store."""

    def get_by_id(self, record_id: int) -> ProductRecord | None:
        raise NotImplementedError

    def get_by_code(self, code: str) -> ProductRecord | None:
        raise NotImplementedError

    def save(self, record: ProductRecord) -> ProductRecord:
        raise NotImplementedError

    def delete(self, record: ProductRecord) -> None:
        raise NotImplementedError


class RecordRepository:
    """Catalog persistence facade for one catalog table.

    Sessions are opened per call, so one instance may be shared by many
    worker threads.
    """

    def __init__(
        self,
        db_path: Path,
        *,
        catalog: str = "chart",
        sqlite_busy_timeout_ms: int = 5_000,
    ) -> None:
        if catalog not in CATALOG_TABLES:
            raise ValueError(
                f"Unsupported catalog: {catalog!r}. Expected one of {sorted(CATALOG_TABLES)}.",
            )
        self.db_path = db_path
        self.catalog = catalog
        self._table = CATALOG_TABLES[catalog]
        self.engine = open_engine(db_path, busy_timeout_ms=sqlite_busy_timeout_ms)

    def close(self) -> None:
        """Close underlying DB resources."""

        self.engine.dispose()

    def init_schema(self) -> None:
        """Run schema migrations."""

        migrate(self.db_path)

    def get_by_id(self, record_id: int) -> ProductRecord | None:
        with self._store_errors(), Session(self.engine) as session:
            row = session.get(self._table, record_id)
            return _to_record(row) if row is not None else None

    def get_by_code(self, code: str) -> ProductRecord | None:
        with self._store_errors(), Session(self.engine) as session:
            row = session.exec(
                select(self._table).where(self._table.code == code),
            ).one_or_none()
            return _to_record(row) if row is not None else None

    def save(self, record: ProductRecord) -> ProductRecord:
        """Insert a new record and return it with the store-assigned id."""

        with self._store_errors(record_code=record.code), Session(self.engine) as session:
            row = self._table(
                code=record.code,
                name=record.name,
                description=record.description,
                created_at=utc_now(),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            saved = _to_record(row)
        logger.debug("Saved %s record id=%s code=%s", self.catalog, saved.id, saved.code)
        return saved

    def delete(self, record: ProductRecord) -> None:
        """Delete a record by its surrogate id; missing rows are ignored."""

        if record.id is None:
            raise ValueError("Cannot delete a record without an id.")
        with self._store_errors(record_code=record.code), Session(self.engine) as session:
            row = session.get(self._table, record.id)
            if row is None:
                return
            session.delete(row)
            session.commit()
        logger.debug("Deleted %s record id=%s code=%s", self.catalog, record.id, record.code)

    def list_records(self, *, limit: int = 50) -> list[ProductRecord]:
        """Most recently created records first."""

        with self._store_errors(), Session(self.engine) as session:
            rows = session.exec(
                select(self._table).order_by(col(self._table.id).desc()).limit(limit),
            ).all()
            return [_to_record(row) for row in rows]

    @contextmanager
    def _store_errors(self, *, record_code: str | None = None) -> Iterator[None]:
        try:
            yield
        except IntegrityError as error:
            raise DuplicateRecordError(
                message=f"Record code already exists in {self.catalog} catalog: {record_code!r}",
                code="duplicate_code",
                record_code=record_code,
            ) from error
        except SQLAlchemyError as error:
            raise StoreError(
                message=f"{self.catalog} catalog store failure: {error}",
            ) from error


def _to_record(row: ProductChart | ProductPurchase) -> ProductRecord:
    return ProductRecord(
        id=row.id,
        code=row.code,
        name=row.name,
        description=row.description,
        created_at=row.created_at,
    )
