"""CLI entrypoint for catalog-workers."""

from pathlib import Path

import rich_click as click

from catalog_workers import __version__
from catalog_workers.catalog.controllers import (
    DbInitCommand,
    RecordAddCommand,
    RecordDeleteCommand,
    RecordListCommand,
    RecordsCliController,
    RecordShowCommand,
)
from catalog_workers.catalog.models import SUPPORTED_CATALOGS
from catalog_workers.catalog.repository import StoreError
from catalog_workers.logging_setup import setup_logging
from catalog_workers.worker.controllers import WorkersCliController, WorkersRunCommand

click.rich_click.USE_MARKDOWN = True
RECORDS_CONTROLLER = RecordsCliController()
WORKERS_CONTROLLER = WorkersCliController()

_catalog_option = click.option(
    "--catalog",
    type=click.Choice(SUPPORTED_CATALOGS, case_sensitive=False),
    default="chart",
    show_default=True,
    help="Product catalog to operate on.",
)
_db_path_option = click.option(
    "--db-path",
    type=click.Path(path_type=Path),
    default=None,
    help="SQLite DB path.",
)


@click.group()
@click.version_option(version=__version__, prog_name="catalog-workers")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
    help="Log level for stderr output.",
)
def catalog_workers(log_level: str) -> None:
    """Catalog task workers CLI."""

    setup_logging(log_level)


@catalog_workers.group()
def db() -> None:
    """Record store schema commands."""


@db.command("init")
@_db_path_option
def db_init(db_path: Path | None) -> None:
    """Apply schema migrations up to head."""

    try:
        lines = RECORDS_CONTROLLER.init_db(DbInitCommand(db_path=db_path))
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@catalog_workers.group()
def workers() -> None:
    """Orchestrator task worker commands."""


@workers.command("run")
@_db_path_option
@click.option(
    "--catalog",
    type=click.Choice(SUPPORTED_CATALOGS, case_sensitive=False),
    default=None,
    help="Catalog whose insert/delete/query task types are served. "
    "Defaults to CATALOG_WORKERS_CATALOG.",
)
@click.option(
    "--thread-count",
    type=click.IntRange(min=1),
    default=None,
    help="Max tasks executed concurrently across all task types.",
)
@click.option(
    "--poll-interval-ms",
    type=click.IntRange(min=0),
    default=None,
    help="Sleep between empty polls per task type.",
)
@click.option("--base-url", default=None, help="Orchestrator API base URL.")
def workers_run(
    db_path: Path | None,
    catalog: str | None,
    thread_count: int | None,
    poll_interval_ms: int | None,
    base_url: str | None,
) -> None:
    """Poll the orchestrator and execute catalog tasks until SIGINT/SIGTERM."""

    try:
        lines = WORKERS_CONTROLLER.run(
            WorkersRunCommand(
                db_path=db_path,
                catalog=catalog.lower() if catalog is not None else None,
                thread_count=thread_count,
                poll_interval_ms=poll_interval_ms,
                base_url=base_url,
            ),
        )
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@catalog_workers.group()
def records() -> None:
    """Catalog record commands."""


@records.command("add")
@_db_path_option
@_catalog_option
@click.option("--code", required=True, help="Unique business code.")
@click.option("--name", required=True, help="Record name.")
@click.option("--description", default="", help="Record description.")
def records_add(
    db_path: Path | None,
    catalog: str,
    code: str,
    name: str,
    description: str,
) -> None:
    """Create a catalog record."""

    try:
        lines = RECORDS_CONTROLLER.add(
            RecordAddCommand(
                db_path=db_path,
                catalog=catalog.lower(),
                code=code,
                name=name,
                description=description,
            ),
        )
    except (StoreError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@records.command("show")
@_db_path_option
@_catalog_option
@click.option("--id", "record_id", type=int, default=None, help="Record id.")
@click.option("--code", default=None, help="Record business code.")
def records_show(
    db_path: Path | None,
    catalog: str,
    record_id: int | None,
    code: str | None,
) -> None:
    """Show one catalog record by id or code."""

    try:
        lines = RECORDS_CONTROLLER.show(
            RecordShowCommand(
                db_path=db_path,
                catalog=catalog.lower(),
                record_id=record_id,
                code=code,
            ),
        )
    except (StoreError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@records.command("delete")
@_db_path_option
@_catalog_option
@click.option("--code", required=True, help="Record business code.")
def records_delete(db_path: Path | None, catalog: str, code: str) -> None:
    """Delete a catalog record by code."""

    try:
        lines = RECORDS_CONTROLLER.delete(
            RecordDeleteCommand(db_path=db_path, catalog=catalog.lower(), code=code),
        )
    except (StoreError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


@records.command("list")
@_db_path_option
@_catalog_option
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=1000),
    default=20,
    show_default=True,
    help="Max number of records to print.",
)
def records_list(db_path: Path | None, catalog: str, limit: int) -> None:
    """List the most recently created catalog records."""

    try:
        lines = RECORDS_CONTROLLER.list_records(
            RecordListCommand(db_path=db_path, catalog=catalog.lower(), limit=limit),
        )
    except (StoreError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    catalog_workers()
