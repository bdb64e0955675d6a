"""Shared test fixtures."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from pathlib import Path

import pytest

from catalog_workers.catalog.repository import RecordRepository
from catalog_workers.worker.client import TransportError
from catalog_workers.worker.models import Task, TaskResult


class FakeOrchestratorClient:
    """In-memory orchestrator: per-type task queues and a log of reported results."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._queues: dict[str, list[Task]] = {}
        self.polls: list[str] = []
        self.reported: list[TaskResult] = []
        self.report_calls = 0
        self.report_failures_left = 0
        self.poll_error: Exception | None = None
        self.expected_reports = 0
        self.all_reported = threading.Event()

    def enqueue(self, task: Task) -> None:
        with self._lock:
            self._queues.setdefault(task.task_type, []).append(task)

    def poll(self, task_type: str) -> Task | None:
        with self._lock:
            self.polls.append(task_type)
            if self.poll_error is not None:
                raise self.poll_error
            queue = self._queues.get(task_type) or []
            if not queue:
                return None
            return queue.pop(0)

    def report_result(self, result: TaskResult) -> None:
        with self._lock:
            self.report_calls += 1
            if self.report_failures_left > 0:
                self.report_failures_left -= 1
                raise TransportError(message="orchestrator unreachable")
            self.reported.append(result)
            if self.expected_reports and len(self.reported) >= self.expected_reports:
                self.all_reported.set()

    def __enter__(self) -> FakeOrchestratorClient:
        return self

    def __exit__(self, *_: object) -> None:
        return None


@pytest.fixture()
def fake_client() -> FakeOrchestratorClient:
    return FakeOrchestratorClient()


@pytest.fixture()
def chart_repository(tmp_path: Path) -> Iterator[RecordRepository]:
    repository = RecordRepository(tmp_path / "catalog.db", catalog="chart")
    repository.init_schema()
    try:
        yield repository
    finally:
        repository.close()
