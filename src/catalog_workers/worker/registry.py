"""Task-type to handler registry."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import NamedTuple

from catalog_workers.catalog.repository import RecordStore
from catalog_workers.worker.handlers import (
    DeleteRecordHandler,
    InsertRecordHandler,
    QueryRecordHandler,
    TaskHandler,
)


class DuplicateTaskTypeError(ValueError):
    """Same task type registered twice."""


class WorkerRegistration(NamedTuple):
    task_type: str
    handler: TaskHandler


class WorkerRegistry:
    """Unique mapping from task type name to handler, in registration order."""

    def __init__(self, registrations: Iterable[tuple[str, TaskHandler]] = ()) -> None:
        self._handlers: dict[str, TaskHandler] = {}
        for task_type, handler in registrations:
            self.register(task_type, handler)

    def register(self, task_type: str, handler: TaskHandler) -> None:
        name = task_type.strip()
        if not name:
            raise ValueError("Task type name must not be empty.")
        if name in self._handlers:
            raise DuplicateTaskTypeError(f"Task type already registered: {name!r}")
        self._handlers[name] = handler

    def get(self, task_type: str) -> TaskHandler | None:
        return self._handlers.get(task_type)

    def registrations(self) -> tuple[WorkerRegistration, ...]:
        return tuple(
            WorkerRegistration(task_type=task_type, handler=handler)
            for task_type, handler in self._handlers.items()
        )

    @property
    def task_types(self) -> tuple[str, ...]:
        return tuple(self._handlers)

    def __contains__(self, task_type: object) -> bool:
        return task_type in self._handlers

    def __iter__(self) -> Iterator[WorkerRegistration]:
        return iter(self.registrations())

    def __len__(self) -> int:
        return len(self._handlers)


def build_catalog_registry(
    *,
    repository: RecordStore,
    insert_task_type: str,
    delete_task_type: str,
    query_task_type: str,
) -> WorkerRegistry:
    """Register insert, delete and query handlers sharing one record store."""

    registry = WorkerRegistry()
    registry.register(insert_task_type, InsertRecordHandler(repository))
    registry.register(delete_task_type, DeleteRecordHandler(repository))
    registry.register(query_task_type, QueryRecordHandler(repository))
    return registry
