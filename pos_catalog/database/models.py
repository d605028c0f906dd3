"""
SQLAlchemy models for the local catalog cache.
Used by catalog_store when a database URL is configured (SQLite by default).
"""
from __future__ import annotations
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from pos_catalog.integrations.contracts.catalog import CatalogEntry


class Base(DeclarativeBase):
    pass


class CatalogProduct(Base):
    __tablename__ = "catalog_products"

    code: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    # Decimal kept as text: SQLite has no native decimal type.
    unit_price: Mapped[str] = mapped_column(String(32), nullable=False, default="0")
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def to_entry(self) -> CatalogEntry:
        return CatalogEntry(
            code=self.code,
            name=self.name,
            unit_price=Decimal(self.unit_price),
            stock_quantity=self.stock_quantity,
        )


def entry_to_row(entry: CatalogEntry, synced_at: datetime) -> dict:
    return {
        "code": entry.code,
        "name": entry.name,
        "unit_price": str(entry.unit_price),
        "stock_quantity": entry.stock_quantity,
        "synced_at": synced_at,
    }
