from __future__ import annotations

from pathlib import Path

import allure
import pytest
from click.testing import CliRunner

from catalog_workers import main
from catalog_workers.main import catalog_workers

pytestmark = [
    allure.epic("Operator CLI"),
    allure.feature("Catalog Records"),
]


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main, "setup_logging", lambda _level: None)


def _invoke(*args: str):
    return CliRunner().invoke(catalog_workers, list(args))


def test_db_init_applies_migrations(tmp_path: Path) -> None:
    db_path = tmp_path / "cli.db"

    result = _invoke("db", "init", "--db-path", str(db_path))

    assert result.exit_code == 0, result.output
    assert "Schema is up to date" in result.output
    assert db_path.exists()


def test_records_add_show_delete_cycle(tmp_path: Path) -> None:
    db = str(tmp_path / "cli.db")

    added = _invoke(
        "records",
        "add",
        "--db-path",
        db,
        "--code",
        "ABC",
        "--name",
        "Widget",
        "--description",
        "A widget",
    )
    shown = _invoke("records", "show", "--db-path", db, "--code", "ABC")
    listed = _invoke("records", "list", "--db-path", db)
    deleted = _invoke("records", "delete", "--db-path", db, "--code", "ABC")
    deleted_again = _invoke("records", "delete", "--db-path", db, "--code", "ABC")

    assert added.exit_code == 0, added.output
    assert "Created chart record: id=1 code=ABC" in added.output
    assert "name='Widget'" in shown.output
    assert "code=ABC" in listed.output
    assert "Deleted chart record" in deleted.output
    assert "No chart record with code 'ABC'" in deleted_again.output


def test_records_add_duplicate_code_fails_cleanly(tmp_path: Path) -> None:
    db = str(tmp_path / "cli.db")
    _invoke("records", "add", "--db-path", db, "--code", "DUP", "--name", "One")

    result = _invoke("records", "add", "--db-path", db, "--code", "DUP", "--name", "Two")

    assert result.exit_code != 0
    assert "already exists" in result.output


def test_records_show_requires_exactly_one_selector(tmp_path: Path) -> None:
    result = _invoke("records", "show", "--db-path", str(tmp_path / "cli.db"))

    assert result.exit_code != 0
    assert "exactly one of --id or --code" in result.output


def test_records_are_scoped_by_catalog(tmp_path: Path) -> None:
    db = str(tmp_path / "cli.db")
    purchase_args = ["--db-path", db, "--catalog", "purchase"]
    _invoke("records", "add", *purchase_args, "--code", "P", "--name", "Pen")

    chart = _invoke("records", "show", "--db-path", db, "--code", "P")
    purchase = _invoke("records", "show", *purchase_args, "--code", "P")

    assert "No chart record found." in chart.output
    assert "code=P" in purchase.output


def test_workers_run_rejects_invalid_base_url(tmp_path: Path) -> None:
    result = _invoke(
        "workers",
        "run",
        "--db-path",
        str(tmp_path / "cli.db"),
        "--base-url",
        "ftp://conductor/api/",
    )

    assert result.exit_code != 0
    assert "Invalid CATALOG_WORKERS_ORCHESTRATOR_URL" in result.output


@pytest.mark.parametrize(
    "args",
    [
        ("db", "init"),
        ("records", "add", "--code", "A", "--name", "A"),
        ("records", "show", "--code", "A"),
        ("records", "delete", "--code", "A"),
        ("records", "list"),
    ],
)
def test_record_commands_report_malformed_env_settings(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    args: tuple[str, ...],
) -> None:
    monkeypatch.setenv("CATALOG_WORKERS_SQLITE_BUSY_TIMEOUT_MS", "abc")

    result = _invoke(*args, "--db-path", str(tmp_path / "cli.db"))

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "invalid literal for int()" in result.output
