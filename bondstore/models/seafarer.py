"""Crew members and representatives who receive goods during a month."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, Float, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..db.session import Base


class Seafarer(Base):
    """A crew member (or representative) registered for one month.

    ``total_spent`` is a cached aggregate of the seafarer's distributions; the
    distributions themselves are the source of truth.
    """

    __tablename__ = "seafarers"
    __table_args__ = (UniqueConstraint("month_pk", "display_id", name="uq_seafarer_month_display_id"),)

    id = Column(Integer, primary_key=True, index=True)
    month_pk = Column(Integer, ForeignKey("months.id", ondelete="CASCADE"), nullable=False, index=True)
    display_id = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    rank = Column(Text, nullable=False, default="")
    total_spent = Column(Float, nullable=False, default=0.0)
    is_representative = Column(Boolean, nullable=False, default=False)
    created_at = Column(Text, nullable=False)

    month = relationship("Month", back_populates="seafarers")
    distributions = relationship(
        "Distribution",
        back_populates="seafarer",
        cascade="all, delete-orphan",
        order_by="[Distribution.date, Distribution.id]",
    )

    @property
    def month_token(self) -> str | None:
        return self.month.month_id if self.month else None


__all__ = ["Seafarer"]
