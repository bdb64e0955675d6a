from __future__ import annotations

import sqlite3
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import allure
import pytest

from catalog_workers.catalog.models import ProductRecord
from catalog_workers.catalog.repository import (
    DuplicateRecordError,
    RecordRepository,
    StoreError,
)

pytestmark = [
    allure.epic("Record Store"),
    allure.feature("Catalog Persistence"),
]


def test_alembic_schema_is_initialized_to_head(tmp_path: Path) -> None:
    db_path = tmp_path / "migrations.db"
    repository = RecordRepository(db_path)
    repository.init_schema()
    repository.close()

    connection = sqlite3.connect(db_path)
    try:
        version = connection.execute("SELECT version_num FROM alembic_version").fetchone()
        tables = connection.execute(
            """
            SELECT name FROM sqlite_master
            WHERE type = 'table' AND name IN ('product_charts', 'product_purchases')
            ORDER BY name
            """,
        ).fetchall()
    finally:
        connection.close()
    assert version == ("20261019_0001",)
    assert [row[0] for row in tables] == ["product_charts", "product_purchases"]


def test_init_schema_is_idempotent(chart_repository: RecordRepository) -> None:
    chart_repository.save(ProductRecord(code="KEEP", name="Keep", description="kept"))

    chart_repository.init_schema()

    assert chart_repository.get_by_code("KEEP") is not None


def test_save_assigns_id_and_record_is_found_by_id_and_code(
    chart_repository: RecordRepository,
) -> None:
    saved = chart_repository.save(
        ProductRecord(code="ABC", name="Widget", description="A widget"),
    )

    assert saved.id is not None
    assert saved.created_at is not None
    by_id = chart_repository.get_by_id(saved.id)
    by_code = chart_repository.get_by_code("ABC")
    assert by_id is not None
    assert by_code is not None
    assert by_id.to_output() == by_code.to_output() == {
        "id": saved.id,
        "code": "ABC",
        "name": "Widget",
        "description": "A widget",
    }


def test_missing_records_return_none(chart_repository: RecordRepository) -> None:
    assert chart_repository.get_by_id(404) is None
    assert chart_repository.get_by_code("missing") is None


def test_duplicate_code_raises_store_error(chart_repository: RecordRepository) -> None:
    chart_repository.save(ProductRecord(code="DUP", name="First", description=""))

    with pytest.raises(DuplicateRecordError) as excinfo:
        chart_repository.save(ProductRecord(code="DUP", name="Second", description=""))

    assert isinstance(excinfo.value, StoreError)
    assert excinfo.value.record_code == "DUP"
    assert "DUP" in str(excinfo.value)


def test_delete_removes_record_and_tolerates_repeat(chart_repository: RecordRepository) -> None:
    saved = chart_repository.save(ProductRecord(code="GONE", name="Gone", description=""))

    chart_repository.delete(saved)
    chart_repository.delete(saved)

    assert chart_repository.get_by_code("GONE") is None


def test_delete_requires_assigned_id(chart_repository: RecordRepository) -> None:
    with pytest.raises(ValueError, match="without an id"):
        chart_repository.delete(ProductRecord(code="NEW", name="New", description=""))


def test_catalogs_are_isolated(tmp_path: Path) -> None:
    db_path = tmp_path / "catalogs.db"
    charts = RecordRepository(db_path, catalog="chart")
    purchases = RecordRepository(db_path, catalog="purchase")
    charts.init_schema()
    try:
        charts.save(ProductRecord(code="SAME", name="Chart item", description=""))
        purchases.save(ProductRecord(code="SAME", name="Purchase item", description=""))

        chart_record = charts.get_by_code("SAME")
        purchase_record = purchases.get_by_code("SAME")
    finally:
        charts.close()
        purchases.close()

    assert chart_record is not None
    assert purchase_record is not None
    assert chart_record.name == "Chart item"
    assert purchase_record.name == "Purchase item"


def test_unknown_catalog_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Unsupported catalog"):
        RecordRepository(tmp_path / "x.db", catalog="warehouse")


def test_list_records_returns_newest_first(chart_repository: RecordRepository) -> None:
    for code in ("A", "B", "C"):
        chart_repository.save(ProductRecord(code=code, name=code, description=""))

    listed = chart_repository.list_records(limit=2)

    assert [record.code for record in listed] == ["C", "B"]


def test_concurrent_inserts_with_distinct_codes_all_succeed(
    chart_repository: RecordRepository,
) -> None:
    codes = [f"CODE-{index}" for index in range(12)]

    with ThreadPoolExecutor(max_workers=6) as pool:
        saved = list(
            pool.map(
                lambda code: chart_repository.save(
                    ProductRecord(code=code, name=f"name {code}", description=code),
                ),
                codes,
            ),
        )

    assert len({record.id for record in saved}) == len(codes)
    for code in codes:
        record = chart_repository.get_by_code(code)
        assert record is not None
        assert record.name == f"name {code}"
