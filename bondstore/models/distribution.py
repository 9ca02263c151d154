from __future__ import annotations

from sqlalchemy import Column, Date, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class Distribution(Base):
    """Goods issued to a seafarer.

    ``item_name``, ``unit_price`` and ``original_item_id`` are snapshots taken
    when the row is created, so historical reports do not change when the
    catalog item is renamed, repriced or deleted.
    """

    __tablename__ = "distributions"

    id = Column(Integer, primary_key=True, index=True)
    seafarer_id = Column(Integer, ForeignKey("seafarers.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="SET NULL"), nullable=True, index=True)
    original_item_id = Column(Text, nullable=True, index=True)
    item_name = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    date = Column(Date, nullable=False, index=True)
    created_at = Column(Text, nullable=False)

    seafarer = relationship("Seafarer", back_populates="distributions")
    item = relationship("InventoryItem", back_populates="distributions")


__all__ = ["Distribution"]
