from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ..core.months import month_range, normalize_month_token
from ..crud.months import require_month
from ..models.distribution import Distribution
from ..models.inventory import InventoryItem, SupplyRecord
from ..models.month import Month
from ..models.seafarer import Seafarer
from .ledger import stock_levels, stock_movements
from .pricing import ZERO, line_total, quantize_currency, to_decimal, unit_price_with_tax


def _catalog(db: Session, end) -> Dict[str, Tuple[str, Decimal]]:
    """Display name and price per logical item.

    The latest record received by ``end`` wins. Logical ids whose items are all
    received later (or were deleted) fall back to the newest distribution
    snapshot, so historic movements still get a label.
    """

    catalog: Dict[str, Tuple[str, Decimal]] = {}
    later: Dict[str, Tuple[str, Decimal]] = {}
    items = db.execute(
        select(InventoryItem).order_by(InventoryItem.received_date, InventoryItem.id)
    ).scalars().all()
    for item in items:
        target = catalog if item.received_date <= end else later
        target[item.original_item_id] = (item.name, to_decimal(item.unit_price))
    for logical_id, entry in later.items():
        catalog.setdefault(logical_id, entry)

    snapshots = db.execute(
        select(Distribution.original_item_id, Distribution.item_name, Distribution.unit_price)
        .where(Distribution.original_item_id.is_not(None))
        .order_by(Distribution.date, Distribution.id)
    ).all()
    fallback: Dict[str, Tuple[str, Decimal]] = {}
    for logical_id, name, price in snapshots:
        fallback[logical_id] = (name, to_decimal(price))
    for logical_id, entry in fallback.items():
        catalog.setdefault(logical_id, entry)
    return catalog


def inventory_stock_report(db: Session, month_token: str) -> Dict[str, Any]:
    """Opening, supplied, distributed and closing stock per item for one month.

    Items with no opening stock and no movement inside the month are left out.
    Rows are sorted by item name.
    """

    token = normalize_month_token(month_token)
    period = month_range(token)
    opening_levels = stock_levels(db, period.day_before)
    movements = stock_movements(db, period.start, period.end)
    catalog = _catalog(db, period.end)

    logical_ids = {key for key, value in opening_levels.items() if value != 0}
    logical_ids.update(
        key for key, value in movements.items() if value["supplied"] or value["distributed"]
    )

    rows = []
    grand_total = ZERO
    for logical_id in logical_ids:
        name, price = catalog.get(logical_id, (logical_id, ZERO))
        opening = opening_levels.get(logical_id, 0)
        moved = movements.get(logical_id, {"supplied": 0, "distributed": 0})
        closing = opening + moved["supplied"] - moved["distributed"]
        price = quantize_currency(price)
        total_value = quantize_currency(Decimal(closing) * price)
        grand_total += total_value
        rows.append(
            {
                "original_item_id": logical_id,
                "name": name,
                "opening_stock": opening,
                "supplies_received": moved["supplied"],
                "distributed_stock": moved["distributed"],
                "closing_stock": closing,
                "price_per_item": price,
                "total_value": total_value,
            }
        )
    rows.sort(key=lambda row: (row["name"], row["original_item_id"]))

    return {
        "month": token,
        "start": period.start,
        "end": period.end,
        "rows": rows,
        "total_value": quantize_currency(grand_total),
    }


def crew_distribution_report(db: Session, month_token: str) -> Dict[str, Any]:
    """Per-seafarer distribution listing for one month, with totals.

    Only seafarers who spent something are listed. Prices include the crew
    markup for regular crew. ``unit_price_with_tax`` is rounded for display
    only; ``line_total`` is computed from the unrounded marked-up price, so
    quantity times the displayed unit price can differ from it by a cent or so.
    """

    month = require_month(db, month_token)
    seafarers = db.execute(
        select(Seafarer)
        .options(selectinload(Seafarer.distributions))
        .where(Seafarer.month_pk == month.id, Seafarer.total_spent > 0)
        .order_by(Seafarer.display_id, Seafarer.id)
    ).scalars().all()

    entries = []
    grand_total = ZERO
    for seafarer in seafarers:
        representative = bool(seafarer.is_representative)
        lines = []
        subtotal = ZERO
        for dist in sorted(seafarer.distributions, key=lambda d: (d.date, d.id)):
            amount = line_total(dist.quantity, dist.unit_price, representative=representative)
            subtotal += amount
            lines.append(
                {
                    "id": dist.id,
                    "date": dist.date,
                    "item_name": dist.item_name,
                    "quantity": dist.quantity,
                    "unit_price_with_tax": unit_price_with_tax(dist.unit_price, representative=representative),
                    "line_total": amount,
                }
            )
        grand_total += subtotal
        entries.append(
            {
                "seafarer_id": seafarer.id,
                "display_id": seafarer.display_id,
                "name": seafarer.name,
                "rank": seafarer.rank,
                "is_representative": representative,
                "distributions": lines,
                "total": subtotal,
            }
        )

    return {"month": month.month_id, "seafarers": entries, "grand_total": grand_total}


def database_summary(db: Session) -> Dict[str, int]:
    def _count(model) -> int:
        return int(db.execute(select(func.count()).select_from(model)).scalar_one())

    return {
        "months": _count(Month),
        "seafarers": _count(Seafarer),
        "items": _count(InventoryItem),
        "supplies": _count(SupplyRecord),
        "distributions": _count(Distribution),
    }


__all__ = ["crew_distribution_report", "database_summary", "inventory_stock_report"]
