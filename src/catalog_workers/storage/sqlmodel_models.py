"""SQLModel ORM tables for the product catalogs."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel


class ProductChart(SQLModel, table=True):
    __tablename__ = "product_charts"  # type: ignore[bad-override]

    id: int | None = Field(default=None, primary_key=True)
    code: str = Field(sa_column=Column(Text, nullable=False, unique=True))
    name: str
    description: str
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class ProductPurchase(SQLModel, table=True):
    __tablename__ = "product_purchases"  # type: ignore[bad-override]

    id: int | None = Field(default=None, primary_key=True)
    code: str = Field(sa_column=Column(Text, nullable=False, unique=True))
    name: str
    description: str
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


CatalogTable = type[ProductChart] | type[ProductPurchase]

CATALOG_TABLES: dict[str, CatalogTable] = {
    "chart": ProductChart,
    "purchase": ProductPurchase,
}
