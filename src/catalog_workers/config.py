"""Runtime configuration for catalog task workers."""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from catalog_workers.catalog.models import SUPPORTED_CATALOGS


@dataclass(slots=True)
class StoreSettings:
    """Record store settings."""

    db_path: Path = Path(".catalog_workers.db")
    busy_timeout_ms: int = 5_000


@dataclass(slots=True)
class OrchestratorSettings:
    """Orchestrator API client settings."""

    base_url: str = "http://conductor:8080/api/"
    worker_id: str = field(default_factory=lambda: _default_worker_id())
    domain: str | None = None
    request_timeout_seconds: float = 30.0
    connect_retries: int = 3


@dataclass(slots=True)
class RunnerSettings:
    """Polling cadence, pool size and result reporting policy."""

    thread_count: int = 3
    poll_interval_ms: int = 1_000
    report_max_attempts: int = 5
    report_backoff_base_seconds: float = 0.5
    report_backoff_max_seconds: float = 30.0


@dataclass(slots=True)
class CatalogTaskTypes:
    """Task type names served for one catalog."""

    insert: str
    delete: str
    query: str

    def names(self) -> tuple[str, str, str]:
        return (self.insert, self.delete, self.query)


@dataclass(slots=True)
class TaskTypeSettings:
    """Task type names per catalog."""

    chart: CatalogTaskTypes = field(
        default_factory=lambda: CatalogTaskTypes(
            insert="insert_product_in_the_chart",
            delete="chart_delete_product",
            query="chart_product_info",
        ),
    )
    purchase: CatalogTaskTypes = field(
        default_factory=lambda: CatalogTaskTypes(
            insert="insert_product_purchase",
            delete="purchase_delete_product",
            query="purchase_product_info",
        ),
    )

    def for_catalog(self, catalog: str) -> CatalogTaskTypes:
        if catalog == "chart":
            return self.chart
        if catalog == "purchase":
            return self.purchase
        raise ValueError(f"Unsupported catalog: {catalog!r}")


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    catalog: str = "chart"
    log_level: str = "INFO"
    store: StoreSettings = field(default_factory=StoreSettings)
    orchestrator: OrchestratorSettings = field(default_factory=OrchestratorSettings)
    runner: RunnerSettings = field(default_factory=RunnerSettings)
    task_types: TaskTypeSettings = field(default_factory=TaskTypeSettings)

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        defaults = TaskTypeSettings()
        return cls(
            catalog=os.getenv("CATALOG_WORKERS_CATALOG", "chart").strip().lower(),
            log_level=os.getenv("CATALOG_WORKERS_LOG_LEVEL", "INFO").strip().upper(),
            store=StoreSettings(
                db_path=db_path
                or Path(os.getenv("CATALOG_WORKERS_DB_PATH", ".catalog_workers.db")),
                busy_timeout_ms=int(os.getenv("CATALOG_WORKERS_SQLITE_BUSY_TIMEOUT_MS", "5000")),
            ),
            orchestrator=OrchestratorSettings(
                base_url=os.getenv(
                    "CATALOG_WORKERS_ORCHESTRATOR_URL",
                    "http://conductor:8080/api/",
                ),
                worker_id=os.getenv("CATALOG_WORKERS_WORKER_ID", "").strip()
                or _default_worker_id(),
                domain=os.getenv("CATALOG_WORKERS_TASK_DOMAIN", "").strip() or None,
                request_timeout_seconds=float(
                    os.getenv("CATALOG_WORKERS_REQUEST_TIMEOUT_SECONDS", "30.0"),
                ),
                connect_retries=int(os.getenv("CATALOG_WORKERS_CONNECT_RETRIES", "3")),
            ),
            runner=RunnerSettings(
                thread_count=int(os.getenv("CATALOG_WORKERS_THREAD_COUNT", "3")),
                poll_interval_ms=int(os.getenv("CATALOG_WORKERS_POLL_INTERVAL_MS", "1000")),
                report_max_attempts=int(os.getenv("CATALOG_WORKERS_REPORT_MAX_ATTEMPTS", "5")),
                report_backoff_base_seconds=float(
                    os.getenv("CATALOG_WORKERS_REPORT_BACKOFF_BASE_SECONDS", "0.5"),
                ),
                report_backoff_max_seconds=float(
                    os.getenv("CATALOG_WORKERS_REPORT_BACKOFF_MAX_SECONDS", "30.0"),
                ),
            ),
            task_types=TaskTypeSettings(
                chart=_task_types_from_env("CHART", defaults.chart),
                purchase=_task_types_from_env("PURCHASE", defaults.purchase),
            ),
        )

    def validate_for_runner(self) -> None:
        """Raise configuration error if worker settings are unusable."""

        if self.catalog not in SUPPORTED_CATALOGS:
            raise ValueError(
                f"CATALOG_WORKERS_CATALOG must be one of {', '.join(SUPPORTED_CATALOGS)}, "
                f"got {self.catalog!r}.",
            )
        _validate_base_url(self.orchestrator.base_url)
        if not self.orchestrator.worker_id:
            raise ValueError("CATALOG_WORKERS_WORKER_ID must not be empty.")
        if self.runner.thread_count < 1:
            raise ValueError("CATALOG_WORKERS_THREAD_COUNT must be >= 1.")
        if self.runner.poll_interval_ms < 0:
            raise ValueError("CATALOG_WORKERS_POLL_INTERVAL_MS must be >= 0.")
        if self.runner.report_max_attempts < 1:
            raise ValueError("CATALOG_WORKERS_REPORT_MAX_ATTEMPTS must be >= 1.")
        if self.runner.report_backoff_base_seconds < 0:
            raise ValueError("CATALOG_WORKERS_REPORT_BACKOFF_BASE_SECONDS must be >= 0.")
        if self.runner.report_backoff_max_seconds < self.runner.report_backoff_base_seconds:
            raise ValueError(
                "CATALOG_WORKERS_REPORT_BACKOFF_MAX_SECONDS must be >= the base backoff.",
            )

        names = self.task_types.for_catalog(self.catalog).names()
        if any(not name.strip() for name in names):
            raise ValueError(f"Task type names for {self.catalog} catalog must not be empty.")
        if len(set(names)) != len(names):
            raise ValueError(
                f"Task type names for {self.catalog} catalog must be unique: {names!r}",
            )


def _task_types_from_env(prefix: str, defaults: CatalogTaskTypes) -> CatalogTaskTypes:
    return CatalogTaskTypes(
        insert=os.getenv(f"CATALOG_WORKERS_{prefix}_INSERT_TASK", defaults.insert).strip(),
        delete=os.getenv(f"CATALOG_WORKERS_{prefix}_DELETE_TASK", defaults.delete).strip(),
        query=os.getenv(f"CATALOG_WORKERS_{prefix}_QUERY_TASK", defaults.query).strip(),
    )


def _default_worker_id() -> str:
    return f"{socket.gethostname()}-{os.getpid()}"


def _validate_base_url(value: str) -> None:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(
            "Invalid CATALOG_WORKERS_ORCHESTRATOR_URL: "
            f"{value!r}. Expected an absolute URL with http:// or https:// scheme.",
        )
