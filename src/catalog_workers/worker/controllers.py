"""Controllers for worker CLI commands."""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from pathlib import Path

from catalog_workers.catalog.repository import RecordRepository
from catalog_workers.config import Settings
from catalog_workers.worker.client import ConductorClient
from catalog_workers.worker.registry import build_catalog_registry
from catalog_workers.worker.runner import RunnerSummary, TaskRunner

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WorkersRunCommand:
    """CLI input for the long-running worker process."""

    db_path: Path | None
    catalog: str | None
    thread_count: int | None
    poll_interval_ms: int | None
    base_url: str | None


class WorkersCliController:
    """Wires settings, record store, orchestrator client and task runner."""

    def run(
        self,
        command: WorkersRunCommand,
        *,
        stop_requested: threading.Event | None = None,
    ) -> list[str]:
        """Serve tasks until a signal arrives or `stop_requested` is set."""

        settings = _apply_overrides(Settings.from_env(db_path=command.db_path), command)
        settings.validate_for_runner()
        task_types = settings.task_types.for_catalog(settings.catalog)

        with (
            _repository(settings, catalog=settings.catalog) as repository,
            ConductorClient(
                base_url=settings.orchestrator.base_url,
                worker_id=settings.orchestrator.worker_id,
                domain=settings.orchestrator.domain,
                timeout_seconds=settings.orchestrator.request_timeout_seconds,
                connect_retries=settings.orchestrator.connect_retries,
            ) as client,
        ):
            registry = build_catalog_registry(
                repository=repository,
                insert_task_type=task_types.insert,
                delete_task_type=task_types.delete,
                query_task_type=task_types.query,
            )
            runner = TaskRunner(
                client=client,
                worker_id=settings.orchestrator.worker_id,
                report_max_attempts=settings.runner.report_max_attempts,
                report_backoff_base_seconds=settings.runner.report_backoff_base_seconds,
                report_backoff_max_seconds=settings.runner.report_backoff_max_seconds,
            )
            runner.start(
                registry.registrations(),
                thread_count=settings.runner.thread_count,
                poll_interval_ms=settings.runner.poll_interval_ms,
            )
            with _signal_handlers(runner.stop):
                while not runner.wait_for_stop(timeout=1.0):
                    if stop_requested is not None and stop_requested.is_set():
                        runner.stop()
            runner.join()
            summary = runner.summary()

        return [
            f"Worker {settings.orchestrator.worker_id} ({settings.catalog}) stopped.",
            _format_summary(summary),
        ]


def _apply_overrides(settings: Settings, command: WorkersRunCommand) -> Settings:
    runner = settings.runner
    if command.thread_count is not None:
        runner = replace(runner, thread_count=command.thread_count)
    if command.poll_interval_ms is not None:
        runner = replace(runner, poll_interval_ms=command.poll_interval_ms)
    orchestrator = settings.orchestrator
    if command.base_url is not None:
        orchestrator = replace(orchestrator, base_url=command.base_url)
    return replace(
        settings,
        catalog=command.catalog or settings.catalog,
        runner=runner,
        orchestrator=orchestrator,
    )


def _format_summary(summary: RunnerSummary) -> str:
    return (
        "Runner summary: "
        f"polled={summary.polled} completed={summary.completed} failed={summary.failed} "
        f"in_progress={summary.in_progress} reported={summary.reported} "
        f"report_failures={summary.report_failures} idle_polls={summary.idle_polls} "
        f"skipped_polls={summary.skipped_polls} poll_errors={summary.poll_errors}"
    )


@contextmanager
def _signal_handlers(on_stop: Callable[[], None]) -> Iterator[None]:
    if not hasattr(signal, "SIGINT"):
        yield
        return

    original_sigint = signal.getsignal(signal.SIGINT)
    original_sigterm = signal.getsignal(signal.SIGTERM)

    def _handler(signum: int, _: object | None) -> None:
        try:
            name = signal.Signals(signum).name
        except ValueError:
            name = str(signum)
        logger.info("Received %s, stopping pollers", name)
        on_stop()

    try:
        signal.signal(signal.SIGINT, _handler)
        signal.signal(signal.SIGTERM, _handler)
    except ValueError:
        logger.warning(
            "Cannot install SIGINT/SIGTERM handlers outside the main thread; "
            "the runner stops only through its stop event",
        )
        yield
        return
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, original_sigint)
        signal.signal(signal.SIGTERM, original_sigterm)


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
