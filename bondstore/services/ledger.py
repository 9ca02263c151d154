"""Stock ledger.

Stock on hand is never stored on the item. It is always derived from the
transaction log: supplies received minus distributions issued, matched by the
item's logical id (``original_item_id``) and cut off at a date (inclusive).
Results are not clamped, so a negative number points at inconsistent data.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.months import month_range
from ..models.distribution import Distribution
from ..models.inventory import InventoryItem, SupplyRecord


def _logical_id_of_distribution():
    # Rows written before snapshots existed fall back to the linked item's id.
    return func.coalesce(Distribution.original_item_id, InventoryItem.original_item_id)


def _supply_totals(
    db: Session,
    *,
    end: date,
    start: date | None = None,
    original_item_id: str | None = None,
) -> Dict[str, int]:
    stmt = (
        select(InventoryItem.original_item_id, func.coalesce(func.sum(SupplyRecord.quantity), 0))
        .join(InventoryItem, InventoryItem.id == SupplyRecord.item_id)
        .where(SupplyRecord.date <= end)
        .group_by(InventoryItem.original_item_id)
    )
    if start is not None:
        stmt = stmt.where(SupplyRecord.date >= start)
    if original_item_id is not None:
        stmt = stmt.where(InventoryItem.original_item_id == original_item_id)
    return {logical_id: int(total or 0) for logical_id, total in db.execute(stmt).all()}


def _distribution_totals(
    db: Session,
    *,
    end: date,
    start: date | None = None,
    original_item_id: str | None = None,
) -> Dict[str, int]:
    logical_id = _logical_id_of_distribution()
    stmt = (
        select(logical_id, func.coalesce(func.sum(Distribution.quantity), 0))
        .outerjoin(InventoryItem, InventoryItem.id == Distribution.item_id)
        .where(Distribution.date <= end, logical_id.is_not(None))
        .group_by(logical_id)
    )
    if start is not None:
        stmt = stmt.where(Distribution.date >= start)
    if original_item_id is not None:
        stmt = stmt.where(logical_id == original_item_id)
    return {key: int(total or 0) for key, total in db.execute(stmt).all()}


def quantity_on_hand(db: Session, original_item_id: str, as_of: date) -> int:
    """Units of the logical item on hand at the end of ``as_of``."""

    supplied = _supply_totals(db, end=as_of, original_item_id=original_item_id)
    distributed = _distribution_totals(db, end=as_of, original_item_id=original_item_id)
    return supplied.get(original_item_id, 0) - distributed.get(original_item_id, 0)


def opening_stock(db: Session, original_item_id: str, month_token: str) -> int:
    period = month_range(month_token)
    return quantity_on_hand(db, original_item_id, period.day_before)


def closing_stock(db: Session, original_item_id: str, month_token: str) -> int:
    period = month_range(month_token)
    return quantity_on_hand(db, original_item_id, period.end)


def stock_movements(db: Session, start: date | None, end: date) -> Dict[str, Dict[str, int]]:
    """Supplied and distributed units per logical item within ``[start, end]``.

    ``start=None`` means "from the beginning of the log", which makes
    ``supplied - distributed`` the quantity on hand as of ``end``.
    """

    movements: Dict[str, Dict[str, int]] = defaultdict(lambda: {"supplied": 0, "distributed": 0})
    for logical_id, total in _supply_totals(db, start=start, end=end).items():
        movements[logical_id]["supplied"] = total
    for logical_id, total in _distribution_totals(db, start=start, end=end).items():
        movements[logical_id]["distributed"] = total
    return dict(movements)


def stock_levels(db: Session, as_of: date) -> Dict[str, int]:
    """Quantity on hand for every logical item with any history up to ``as_of``."""

    return {
        logical_id: values["supplied"] - values["distributed"]
        for logical_id, values in stock_movements(db, None, as_of).items()
    }


__all__ = [
    "closing_stock",
    "opening_stock",
    "quantity_on_hand",
    "stock_levels",
    "stock_movements",
]
