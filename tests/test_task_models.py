from __future__ import annotations

import allure
import pytest

from catalog_workers.worker.models import Task, TaskResult, TaskStatus

pytestmark = [
    allure.epic("Task Workers"),
    allure.feature("Task Contracts"),
]


def test_task_from_wire_accepts_task_def_name_and_defaults() -> None:
    task = Task.from_wire({"taskId": "t-1", "taskDefName": "chart_product_info"})

    assert task.task_type == "chart_product_info"
    assert task.input_data == {}
    assert task.workflow_instance_id is None
    assert task.poll_count == 0


@pytest.mark.parametrize(
    "payload",
    [
        {"taskType": "x"},
        {"taskId": "t-1"},
        {"taskId": "t-1", "taskType": "x", "inputData": ["not", "a", "map"]},
    ],
)
def test_task_from_wire_rejects_incomplete_payloads(payload: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        Task.from_wire(payload)


def test_result_copies_routing_ids_and_output() -> None:
    task = Task(task_type="x", task_id="t-1", workflow_instance_id="wf-1")
    output = {"info": None}

    result = task.result(TaskStatus.IN_PROGRESS, output)
    output["extra"] = True

    assert result.task_id == "t-1"
    assert result.workflow_instance_id == "wf-1"
    assert result.output_data == {"info": None}


def test_result_wire_shape_omits_unset_optional_fields() -> None:
    result = TaskResult(task_id="t-1", status=TaskStatus.FAILED)

    assert result.to_wire() == {"taskId": "t-1", "status": "FAILED", "outputData": {}}


def test_failed_result_wire_shape_includes_reason() -> None:
    result = TaskResult(
        task_id="t-1",
        status=TaskStatus.FAILED,
        output_data={"error": "boom"},
        reason_for_incompletion="RuntimeError: boom",
    )

    assert result.to_wire()["reasonForIncompletion"] == "RuntimeError: boom"
