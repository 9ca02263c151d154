"""Ledger period (one row per ``YYYY-MM`` month)."""

from __future__ import annotations

from sqlalchemy import Column, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class Month(Base):
    __tablename__ = "months"

    id = Column(Integer, primary_key=True, index=True)
    month_id = Column(Text, nullable=False, unique=True, index=True)
    created_at = Column(Text, nullable=False)

    seafarers = relationship(
        "Seafarer",
        back_populates="month",
        cascade="all, delete-orphan",
        order_by="Seafarer.display_id",
    )


__all__ = ["Month"]
