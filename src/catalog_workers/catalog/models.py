"""Domain models for the product catalogs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

SUPPORTED_CATALOGS = ("chart", "purchase")


@dataclass(slots=True)
class ProductRecord:
    """Catalog record detached from any storage session.

    `id` is assigned by the store on save and never changes afterwards;
    `code` is the client-assigned business key.
    """

    code: str
    name: str
    description: str
    id: int | None = None
    created_at: datetime | None = None

    def to_output(self) -> dict[str, Any]:
        """Serializable view used in task output data."""

        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "description": self.description,
        }
