"""Polling and dispatch loop for registered task handlers.

Each registered task type gets its own polling thread; handlers run on one
shared pool of `thread_count` threads. A poller only claims a task after it
has reserved a free pool slot, so a saturated pool skips polls instead of
holding claimed tasks in a local queue.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace

from catalog_workers.worker.client import OrchestratorClient
from catalog_workers.worker.handlers import TaskHandler
from catalog_workers.worker.models import Task, TaskResult, TaskStatus
from catalog_workers.worker.registry import WorkerRegistry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RunnerSummary:
    """Aggregate runner counters for CLI reporting."""

    polled: int = 0
    completed: int = 0
    failed: int = 0
    in_progress: int = 0
    reported: int = 0
    report_failures: int = 0
    idle_polls: int = 0
    skipped_polls: int = 0
    poll_errors: int = 0


class TaskRunner:
    """Drives poll -> execute -> report for every registered task type."""

    def __init__(
        self,
        *,
        client: OrchestratorClient,
        worker_id: str,
        report_max_attempts: int = 5,
        report_backoff_base_seconds: float = 0.5,
        report_backoff_max_seconds: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if report_max_attempts < 1:
            raise ValueError("report_max_attempts must be >= 1.")
        self.client = client
        self.worker_id = worker_id
        self.report_max_attempts = report_max_attempts
        self.report_backoff_base_seconds = report_backoff_base_seconds
        self.report_backoff_max_seconds = report_backoff_max_seconds
        self._sleep = sleep
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._summary = RunnerSummary()
        self._pollers: list[threading.Thread] = []
        self._executor: ThreadPoolExecutor | None = None
        self._poll_interval_seconds = 0.0

    @property
    def is_running(self) -> bool:
        return self._executor is not None and not self._stop.is_set()

    def start(
        self,
        registrations: Iterable[tuple[str, TaskHandler]],
        thread_count: int,
        poll_interval_ms: int,
    ) -> None:
        """Start one polling cadence per task type sharing `thread_count` pool slots."""

        if self._executor is not None:
            raise RuntimeError("Task runner has already been started.")
        registry = (
            registrations
            if isinstance(registrations, WorkerRegistry)
            else WorkerRegistry(registrations)
        )
        if len(registry) == 0:
            raise ValueError("At least one task type must be registered.")
        if thread_count < 1:
            raise ValueError("thread_count must be >= 1.")
        if poll_interval_ms < 0:
            raise ValueError("poll_interval_ms must be >= 0.")
        if thread_count < len(registry):
            logger.warning(
                "thread_count=%d is lower than the number of task types (%d); "
                "some task types may starve",
                thread_count,
                len(registry),
            )

        self._poll_interval_seconds = poll_interval_ms / 1000.0
        slots = threading.BoundedSemaphore(thread_count)
        executor = ThreadPoolExecutor(
            max_workers=thread_count,
            thread_name_prefix="task-worker",
        )
        self._executor = executor
        for registration in registry.registrations():
            poller = threading.Thread(
                target=self._poll_loop,
                args=(registration.task_type, registration.handler, executor, slots),
                daemon=True,
                name=f"poller-{registration.task_type}",
            )
            self._pollers.append(poller)
            poller.start()
        logger.info(
            "Task runner started: task_types=%s thread_count=%d poll_interval_ms=%d",
            ",".join(registry.task_types),
            thread_count,
            poll_interval_ms,
        )

    def stop(self) -> None:
        """Ask pollers to exit after their current iteration; running handlers continue."""

        if not self._stop.is_set():
            logger.info("Task runner stop requested")
        self._stop.set()

    def wait_for_stop(self, timeout: float | None = None) -> bool:
        return self._stop.wait(timeout=timeout)

    def join(self, timeout: float | None = None) -> None:
        """Wait for pollers to exit, then for dispatched tasks to be reported."""

        for poller in self._pollers:
            poller.join(timeout=timeout)
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    def summary(self) -> RunnerSummary:
        with self._lock:
            return replace(self._summary)

    def execute(self, task: Task, handler: TaskHandler) -> TaskResult:
        """Run a handler, mapping any fault to a FAILED result."""

        try:
            result = handler.execute(task)
            if not isinstance(result, TaskResult):
                raise TypeError(
                    f"Handler returned {type(result).__name__} instead of TaskResult",
                )
        except Exception as error:  # noqa: BLE001
            logger.exception("Task %s (%s) handler fault", task.task_id, task.task_type)
            result = task.result(
                TaskStatus.FAILED,
                {"error": str(error), "errorType": type(error).__name__},
            )
            result.reason_for_incompletion = f"{type(error).__name__}: {error}"
        if result.worker_id is None:
            result.worker_id = self.worker_id
        return result

    def report(self, result: TaskResult) -> bool:
        """Report with bounded exponential backoff; False when the result was dropped."""

        for attempt in range(1, self.report_max_attempts + 1):
            try:
                self.client.report_result(result)
            except Exception as error:  # noqa: BLE001
                if attempt >= self.report_max_attempts:
                    logger.error(
                        "Dropping result for task %s after %d report attempts: %s",
                        result.task_id,
                        attempt,
                        error,
                    )
                    self._count(report_failures=1)
                    return False
                delay = self._compute_report_delay(attempt=attempt)
                logger.warning(
                    "Report for task %s failed (attempt %d/%d), retrying in %.2fs: %s",
                    result.task_id,
                    attempt,
                    self.report_max_attempts,
                    delay,
                    error,
                )
                self._sleep(delay)
                continue
            self._count(reported=1)
            return True
        return False

    def _poll_loop(
        self,
        task_type: str,
        handler: TaskHandler,
        executor: ThreadPoolExecutor,
        slots: threading.BoundedSemaphore,
    ) -> None:
        while not self._stop.is_set():
            if not slots.acquire(blocking=False):
                self._count(skipped_polls=1)
                self._stop.wait(self._poll_interval_seconds)
                continue

            try:
                task = self.client.poll(task_type)
            except Exception as error:  # noqa: BLE001
                slots.release()
                self._count(poll_errors=1)
                logger.warning("Poll for %s failed: %s", task_type, error)
                self._stop.wait(self._poll_interval_seconds)
                continue

            if task is None:
                slots.release()
                self._count(idle_polls=1)
                self._stop.wait(self._poll_interval_seconds)
                continue

            self._count(polled=1)
            logger.debug("Polled task %s (%s)", task.task_id, task_type)
            try:
                executor.submit(self._dispatch, task, handler, slots)
            except RuntimeError:
                # Pool already shut down by join(); the claimed task still needs a result.
                self._dispatch(task, handler, slots)
        logger.debug("Poller for %s exited", task_type)

    def _dispatch(
        self,
        task: Task,
        handler: TaskHandler,
        slots: threading.BoundedSemaphore,
    ) -> None:
        try:
            result = self.execute(task, handler)
            if result.status is TaskStatus.COMPLETED:
                self._count(completed=1)
            elif result.status is TaskStatus.IN_PROGRESS:
                self._count(in_progress=1)
            else:
                self._count(failed=1)
            self.report(result)
        finally:
            slots.release()

    def _compute_report_delay(self, *, attempt: int) -> float:
        return min(
            self.report_backoff_max_seconds,
            self.report_backoff_base_seconds * (2 ** max(attempt - 1, 0)),
        )

    def _count(self, **increments: int) -> None:
        with self._lock:
            for name, value in increments.items():
                setattr(self._summary, name, getattr(self._summary, name) + value)
