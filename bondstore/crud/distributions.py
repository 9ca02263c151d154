"""Distributions: goods issued to seafarers.

Every mutation checks stock against the ledger before touching the session and
keeps the seafarer's cached ``total_spent`` in step with the change, so the
incremental value always equals ``seafarers.compute_total_spent``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.exceptions import InsufficientStock, NotFound
from ..db.session import commit_or_rollback
from ..models.distribution import Distribution
from ..models.inventory import InventoryItem
from ..models.seafarer import Seafarer
from ..services.ledger import quantity_on_hand
from ..services.pricing import line_total, quantize_currency, to_decimal
from .inventory import _coerce_date, get_item_by_barcode

logger = logging.getLogger(__name__)


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def _coerce_quantity(value: object) -> int:
    try:
        quantity = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError("quantity must be a whole number") from exc
    if quantity <= 0:
        raise ValueError("quantity must be greater than zero")
    return quantity


def _adjust_total(seafarer: Seafarer, delta: Decimal) -> None:
    seafarer.total_spent = float(quantize_currency(to_decimal(seafarer.total_spent) + delta))


def _line_total(dist: Distribution, seafarer: Seafarer) -> Decimal:
    return line_total(dist.quantity, dist.unit_price, representative=seafarer.is_representative)


def list_distributions(db: Session, seafarer: Seafarer) -> list[Distribution]:
    stmt = (
        select(Distribution)
        .where(Distribution.seafarer_id == seafarer.id)
        .order_by(Distribution.date, Distribution.id)
    )
    return db.execute(stmt).scalars().all()


def get_distribution(db: Session, distribution_id: int) -> Distribution | None:
    return db.get(Distribution, distribution_id)


def require_distribution(db: Session, distribution_id: int) -> Distribution:
    dist = get_distribution(db, distribution_id)
    if dist is None:
        raise NotFound("Distribution", distribution_id)
    return dist


def _check_stock(db: Session, logical_id: str, name: str, requested: int, as_of: date, already: int = 0) -> None:
    """Raise ``InsufficientStock`` if ``requested`` exceeds what is on hand on ``as_of``.

    ``already`` is stock that the check should treat as given back (the row's
    own quantity when it is being edited) or taken (negative, earlier lines of
    the same batch).
    """

    available = quantity_on_hand(db, logical_id, as_of) + already
    if requested > available:
        logger.info(
            "distribution rejected: insufficient stock",
            extra={"extra_data": {"item": name, "requested": requested, "available": available}},
        )
        raise InsufficientStock(name, requested, available)


def _stage(seafarer: Seafarer, item: InventoryItem, quantity: int, dist_date: date) -> Distribution:
    dist = Distribution(
        item_id=item.id,
        original_item_id=item.original_item_id,
        item_name=item.name,
        quantity=quantity,
        unit_price=item.unit_price,
        date=dist_date,
        created_at=_utcnow(),
    )
    seafarer.distributions.append(dist)
    _adjust_total(seafarer, _line_total(dist, seafarer))
    return dist


def add_distribution(
    db: Session,
    seafarer: Seafarer,
    item: InventoryItem,
    *,
    quantity: object,
    distribution_date: object,
) -> Distribution:
    """Issue ``quantity`` units of ``item`` to ``seafarer``.

    The item's current name and price are copied onto the row. Stock is checked
    as of ``distribution_date`` before anything is written.
    """

    qty = _coerce_quantity(quantity)
    dist_date = _coerce_date(distribution_date, "date")
    _check_stock(db, item.original_item_id, item.name, qty, dist_date)
    dist = _stage(seafarer, item, qty, dist_date)
    commit_or_rollback(db, "Could not save distribution", seafarer_id=seafarer.id)
    db.refresh(dist)
    logger.info(
        "distribution recorded",
        extra={
            "extra_data": {
                "seafarer_id": seafarer.id,
                "item": dist.item_name,
                "quantity": qty,
                "date": dist_date.isoformat(),
            }
        },
    )
    return dist


def update_distribution(db: Session, dist: Distribution, payload: dict) -> Distribution:
    """Change quantity and/or date; increases are checked against the ledger."""

    seafarer = dist.seafarer
    new_qty = _coerce_quantity(payload["quantity"]) if payload.get("quantity") is not None else dist.quantity
    new_date = _coerce_date(payload["date"], "date") if payload.get("date") is not None else dist.date
    if new_qty == dist.quantity and new_date == dist.date:
        return dist

    if dist.original_item_id and (new_qty > dist.quantity or new_date != dist.date):
        # The row's own quantity is part of the on-hand figure once the new date reaches it.
        returned = dist.quantity if dist.date <= new_date else 0
        _check_stock(db, dist.original_item_id, dist.item_name, new_qty, new_date, already=returned)

    before = _line_total(dist, seafarer)
    dist.quantity = new_qty
    dist.date = new_date
    _adjust_total(seafarer, _line_total(dist, seafarer) - before)
    commit_or_rollback(db, "Could not update distribution", distribution_id=dist.id)
    db.refresh(dist)
    return dist


def delete_distribution(db: Session, dist: Distribution) -> None:
    seafarer = dist.seafarer
    dist_id = dist.id
    _adjust_total(seafarer, -_line_total(dist, seafarer))
    seafarer.distributions.remove(dist)
    commit_or_rollback(db, "Could not delete distribution", distribution_id=dist_id)


def issue_scanned_items(db: Session, seafarer: Seafarer, lines: Iterable[dict]) -> list[Distribution]:
    """Issue a batch of scanned ``{barcode, quantity, date}`` lines as one unit.

    Unknown barcodes and stock shortfalls (counting earlier lines of the same
    batch for the same item) reject the whole batch before anything is written.
    """

    resolved: list[tuple[InventoryItem, int, date]] = []
    for line in lines:
        barcode = str(line.get("barcode") or "")
        item = get_item_by_barcode(db, barcode)
        if item is None:
            raise NotFound("Inventory item with barcode", barcode)
        resolved.append(
            (item, _coerce_quantity(line.get("quantity", 1)), _coerce_date(line.get("date") or date.today(), "date"))
        )
    if not resolved:
        raise ValueError("at least one scanned line is required")

    taken: dict[str, list[tuple[date, int]]] = defaultdict(list)
    for item, qty, dist_date in sorted(resolved, key=lambda entry: entry[2]):
        earlier = sum(q for d, q in taken[item.original_item_id] if d <= dist_date)
        _check_stock(db, item.original_item_id, item.name, qty, dist_date, already=-earlier)
        taken[item.original_item_id].append((dist_date, qty))

    created = [_stage(seafarer, item, qty, dist_date) for item, qty, dist_date in resolved]
    commit_or_rollback(db, "Could not save scanned distributions", seafarer_id=seafarer.id)
    for dist in created:
        db.refresh(dist)
    logger.info(
        "scanned distributions recorded",
        extra={"extra_data": {"seafarer_id": seafarer.id, "lines": len(created)}},
    )
    return created


__all__ = [
    "add_distribution",
    "delete_distribution",
    "get_distribution",
    "issue_scanned_items",
    "list_distributions",
    "require_distribution",
    "update_distribution",
]
