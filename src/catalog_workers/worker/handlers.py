"""Task handlers operating on a product catalog.

Handlers raise on faults (bad input, store failures); the task runner turns
those into FAILED results. Only the delete handler returns FAILED on its own,
for a code that is not (or no longer) in the catalog.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol

from catalog_workers.catalog.models import ProductRecord
from catalog_workers.catalog.repository import RecordStore
from catalog_workers.worker.models import Task, TaskResult, TaskStatus

logger = logging.getLogger(__name__)

RECORD_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


@dataclass(slots=True)
class TaskInputError(Exception):
    """Task input is missing a required key or has the wrong type."""

    message: str
    code: str = "task_input"

    def __str__(self) -> str:
        return self.message


class TaskHandler(Protocol):
    """Business logic bound to one task type."""

    def execute(self, task: Task) -> TaskResult:
        raise NotImplementedError


class InsertRecordHandler:
    """Creates a catalog record from `code`, `name` and `description`."""

    def __init__(self, repository: RecordStore) -> None:
        self.repository = repository

    def execute(self, task: Task) -> TaskResult:
        record = ProductRecord(
            code=_require_text(task, "code"),
            name=_require_text(task, "name"),
            description=_require_text(task, "description"),
        )
        saved = self.repository.save(record)
        logger.info("Task %s inserted record id=%s code=%s", task.task_id, saved.id, saved.code)
        return task.result(TaskStatus.COMPLETED, {"id": saved.id, "code": saved.code})


class DeleteRecordHandler:
    """Deletes the record matching `productCode`.

    A missing code yields FAILED; redelivered tasks for an already deleted
    code end the same way.
    """

    def __init__(self, repository: RecordStore) -> None:
        self.repository = repository

    def execute(self, task: Task) -> TaskResult:
        code = _require_text(task, "productCode")
        record = self.repository.get_by_code(code)
        if record is None:
            logger.info("Task %s found no record with code=%s", task.task_id, code)
            return task.result(TaskStatus.FAILED)

        result = task.result(
            TaskStatus.COMPLETED,
            {"name": record.name, "description": record.description},
        )
        self.repository.delete(record)
        logger.info("Task %s deleted record id=%s code=%s", task.task_id, record.id, code)
        return result


class QueryRecordHandler:
    """Looks a record up by `id`; absence is a valid answer."""

    def __init__(self, repository: RecordStore) -> None:
        self.repository = repository

    def execute(self, task: Task) -> TaskResult:
        record_id = _parse_record_id(_require(task, "id"))
        record = self.repository.get_by_id(record_id)
        info = record.to_output() if record is not None else None
        logger.info(
            "Task %s looked up record id=%s found=%s",
            task.task_id,
            record_id,
            info is not None,
        )
        return task.result(TaskStatus.COMPLETED, {"info": info})


def _require(task: Task, key: str) -> Any:
    if key not in task.input_data or task.input_data[key] is None:
        raise TaskInputError(message=f"Task {task.task_id} input is missing {key!r}")
    return task.input_data[key]


def _require_text(task: Task, key: str) -> str:
    value = _require(task, key)
    if not isinstance(value, str):
        raise TaskInputError(
            message=(
                f"Task {task.task_id} input {key!r} must be a string, "
                f"got {type(value).__name__}"
            ),
        )
    return value


def _parse_record_id(value: Any) -> int:
    if isinstance(value, bool):
        raise TaskInputError(message=f"Record id must be numeric, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        if RECORD_ID_PATTERN.fullmatch(value) is None:
            raise ValueError(f"Record id is not a decimal integer: {value!r}")
        return int(value)
    raise TaskInputError(message=f"Record id must be numeric, got {type(value).__name__}")
