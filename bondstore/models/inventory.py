"""Inventory catalog: items, their barcodes and supply receipts."""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Date, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


def new_logical_id() -> str:
    return uuid4().hex


class InventoryItem(Base):
    """A stock-keeping unit in the flat catalog.

    ``original_item_id`` is the logical identity used by the stock ledger. It is
    assigned once and carried unchanged by any copy of the record.
    """

    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    original_item_id = Column(Text, nullable=False, index=True, default=new_logical_id)
    name = Column(Text, nullable=False, index=True)
    unit_price = Column(Float, nullable=False, default=0.0)
    received_date = Column(Date, nullable=False, index=True)
    created_at = Column(Text, nullable=False)

    barcode_rows = relationship(
        "ItemBarcode",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="ItemBarcode.id",
        lazy="selectin",
    )
    supplies = relationship(
        "SupplyRecord",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="[SupplyRecord.date, SupplyRecord.id]",
    )
    distributions = relationship("Distribution", back_populates="item")

    @property
    def barcodes(self) -> list[str]:
        return [row.barcode for row in self.barcode_rows]


class ItemBarcode(Base):
    __tablename__ = "item_barcodes"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True)
    barcode = Column(Text, nullable=False, unique=True, index=True)

    item = relationship("InventoryItem", back_populates="barcode_rows")


class SupplyRecord(Base):
    """Stock received for an item. Rows are never edited, only added or removed."""

    __tablename__ = "supply_records"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)

    item = relationship("InventoryItem", back_populates="supplies")


__all__ = ["InventoryItem", "ItemBarcode", "SupplyRecord", "new_logical_id"]
