"""HTTP client for the Conductor-compatible task API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from catalog_workers.worker.models import Task, TaskResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CONNECT_RETRIES = 3
DEFAULT_USER_AGENT = "catalog-workers/0.1"


@dataclass(slots=True)
class TransportError(Exception):
    """Orchestrator unreachable or answered with an unexpected response."""

    message: str
    code: str = "transport"
    status_code: int | None = None

    def __str__(self) -> str:
        return self.message


class OrchestratorClient(Protocol):
    """Poll/update boundary the task runner depends on."""

    def poll(self, task_type: str) -> Task | None:
        raise NotImplementedError

    def report_result(self, result: TaskResult) -> None:
        raise NotImplementedError


class ConductorClient:
    """Polls tasks and posts results over the Conductor REST API."""

    def __init__(
        self,
        *,
        base_url: str,
        worker_id: str,
        domain: str | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        connect_retries: int = DEFAULT_CONNECT_RETRIES,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.worker_id = worker_id
        self.domain = domain
        self._client = httpx.Client(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            transport=transport or httpx.HTTPTransport(retries=connect_retries),
        )

    def poll(self, task_type: str) -> Task | None:
        """Claim one task of the given type, or None when nothing is queued."""

        params = {"workerid": self.worker_id}
        if self.domain:
            params["domain"] = self.domain
        try:
            response = self._client.get(f"tasks/poll/{task_type}", params=params)
        except httpx.HTTPError as exc:
            raise TransportError(message=f"Poll for {task_type} failed: {exc}") from exc

        if not response.is_success:
            raise TransportError(
                message=f"Poll for {task_type} returned HTTP {response.status_code}",
                code="http_status",
                status_code=response.status_code,
            )
        if response.status_code == httpx.codes.NO_CONTENT or not response.content.strip():
            return None
        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(
                message=f"Poll for {task_type} returned invalid JSON",
                code="invalid_payload",
                status_code=response.status_code,
            ) from exc
        if not payload:
            return None
        if not isinstance(payload, dict):
            raise TransportError(
                message=f"Poll for {task_type} returned a non-object payload",
                code="invalid_payload",
                status_code=response.status_code,
            )
        try:
            return Task.from_wire(payload)
        except ValueError as exc:
            raise TransportError(
                message=f"Poll for {task_type} returned malformed task: {exc}",
                code="invalid_payload",
                status_code=response.status_code,
            ) from exc

    def report_result(self, result: TaskResult) -> None:
        """Send the task verdict back to the orchestrator."""

        try:
            response = self._client.post("tasks", json=result.to_wire())
        except httpx.HTTPError as exc:
            raise TransportError(
                message=f"Result update for task {result.task_id} failed: {exc}",
            ) from exc
        if not response.is_success:
            raise TransportError(
                message=(
                    f"Result update for task {result.task_id} returned HTTP {response.status_code}"
                ),
                code="http_status",
                status_code=response.status_code,
            )
        logger.debug("Reported task %s as %s", result.task_id, result.status.value)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ConductorClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
