"""Task and task result contracts exchanged with the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TaskStatus(str, Enum):
    """Statuses a worker may report for a task."""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    IN_PROGRESS = "IN_PROGRESS"


@dataclass(slots=True)
class Task:
    """Orchestrator-issued work item, possibly a redelivery of an earlier one."""

    task_type: str
    task_id: str
    input_data: dict[str, Any] = field(default_factory=dict)
    workflow_instance_id: str | None = None
    poll_count: int = 0

    @classmethod
    def from_wire(cls, payload: dict[str, Any]) -> Task:
        """Build a task from the orchestrator JSON shape."""

        task_id = payload.get("taskId")
        task_type = payload.get("taskType") or payload.get("taskDefName")
        if not task_id or not task_type:
            raise ValueError(f"Task payload is missing taskId or taskType: {sorted(payload)}")
        input_data = payload.get("inputData") or {}
        if not isinstance(input_data, dict):
            raise ValueError(f"Task {task_id} inputData must be an object.")
        return cls(
            task_type=str(task_type),
            task_id=str(task_id),
            input_data=dict(input_data),
            workflow_instance_id=payload.get("workflowInstanceId"),
            poll_count=int(payload.get("pollCount") or 0),
        )

    def result(
        self,
        status: TaskStatus,
        output_data: dict[str, Any] | None = None,
    ) -> TaskResult:
        """Start a result for this task with the routing ids copied over."""

        return TaskResult(
            task_id=self.task_id,
            status=status,
            output_data=dict(output_data or {}),
            workflow_instance_id=self.workflow_instance_id,
        )


@dataclass(slots=True)
class TaskResult:
    """Worker verdict for one task."""

    task_id: str
    status: TaskStatus
    output_data: dict[str, Any] = field(default_factory=dict)
    workflow_instance_id: str | None = None
    worker_id: str | None = None
    reason_for_incompletion: str | None = None

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "taskId": self.task_id,
            "status": self.status.value,
            "outputData": self.output_data,
        }
        if self.workflow_instance_id is not None:
            payload["workflowInstanceId"] = self.workflow_instance_id
        if self.worker_id is not None:
            payload["workerId"] = self.worker_id
        if self.reason_for_incompletion is not None:
            payload["reasonForIncompletion"] = self.reason_for_incompletion
        return payload
