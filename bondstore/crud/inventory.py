"""Inventory catalog helpers: items, barcodes and supply receipts."""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.barcodes import barcode_aliases, normalize_barcode_list
from ..core.exceptions import DuplicateIdentifier, NotFound
from ..core.months import month_range
from ..db.session import commit_or_rollback
from ..models.inventory import InventoryItem, ItemBarcode, SupplyRecord, new_logical_id

logger = logging.getLogger(__name__)


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def _coerce_date(value: object, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            raise ValueError(f"{field} must be an ISO date (YYYY-MM-DD)") from exc
    raise ValueError(f"{field} is required")


def _coerce_price(value: object) -> float:
    if value is None or isinstance(value, bool):
        raise ValueError("unit_price is required")
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError("unit_price must be a number") from exc
    if not price.is_finite():
        raise ValueError("unit_price must be a number")
    if price < 0:
        raise ValueError("unit_price must not be negative")
    return float(price)


def list_items(db: Session, month_token: str | None = None) -> list[InventoryItem]:
    """Catalog items ordered by name; with ``month_token`` only those received by the month's end."""

    stmt = select(InventoryItem).order_by(InventoryItem.name, InventoryItem.id)
    if month_token:
        stmt = stmt.where(InventoryItem.received_date <= month_range(month_token).end)
    return db.execute(stmt).scalars().all()


def get_item(db: Session, item_id: int) -> InventoryItem | None:
    return db.get(InventoryItem, item_id)


def require_item(db: Session, item_id: int) -> InventoryItem:
    item = get_item(db, item_id)
    if item is None:
        raise NotFound("Inventory item", item_id)
    return item


def get_item_by_barcode(db: Session, barcode: str) -> InventoryItem | None:
    """Find the item carrying ``barcode`` or any equivalent alias of it."""

    for candidate in barcode_aliases(barcode):
        stmt = select(ItemBarcode).where(ItemBarcode.barcode == candidate)
        row = db.execute(stmt).scalars().first()
        if row is not None:
            return row.item
    return None


def _ensure_barcodes_free(db: Session, barcodes: Iterable[str], exclude_item_id: int | None = None) -> None:
    for code in barcodes:
        for candidate in barcode_aliases(code):
            stmt = select(ItemBarcode.item_id).where(ItemBarcode.barcode == candidate)
            if exclude_item_id is not None:
                stmt = stmt.where(ItemBarcode.item_id != exclude_item_id)
            if db.execute(stmt).first() is not None:
                raise DuplicateIdentifier("barcode", code)


def create_item(db: Session, payload: dict) -> InventoryItem:
    """Create a catalog item.

    ``initial_quantity`` (optional, > 0) is recorded as the item's first supply
    dated on ``received_date``; the item row itself never stores a quantity.
    """

    name = str(payload.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    received = _coerce_date(payload.get("received_date") or date.today(), "received_date")
    barcodes = normalize_barcode_list(payload.get("barcodes"))
    _ensure_barcodes_free(db, barcodes)
    initial_quantity = int(payload.get("initial_quantity") or 0)
    if initial_quantity < 0:
        raise ValueError("initial_quantity must not be negative")

    now = _utcnow()
    item = InventoryItem(
        original_item_id=payload.get("original_item_id") or new_logical_id(),
        name=name,
        unit_price=_coerce_price(payload.get("unit_price")),
        received_date=received,
        created_at=now,
    )
    item.barcode_rows = [ItemBarcode(barcode=code) for code in barcodes]
    if initial_quantity:
        item.supplies.append(
            SupplyRecord(date=received, quantity=initial_quantity, note="initial stock", created_at=now)
        )
    db.add(item)
    commit_or_rollback(db, "Could not save inventory item", name=name)
    db.refresh(item)
    logger.info(
        "inventory item created",
        extra={"extra_data": {"item_id": item.id, "name": name, "initial_quantity": initial_quantity}},
    )
    return item


def update_item(db: Session, item: InventoryItem, payload: dict) -> InventoryItem:
    """Edit name, price, received date or barcodes. ``original_item_id`` is never changed."""

    if "name" in payload and payload["name"] is not None:
        name = str(payload["name"]).strip()
        if not name:
            raise ValueError("name is required")
        item.name = name
    if "unit_price" in payload and payload["unit_price"] is not None:
        item.unit_price = _coerce_price(payload["unit_price"])
    if "received_date" in payload and payload["received_date"] is not None:
        item.received_date = _coerce_date(payload["received_date"], "received_date")
    if "barcodes" in payload and payload["barcodes"] is not None:
        barcodes = normalize_barcode_list(payload["barcodes"])
        _ensure_barcodes_free(db, barcodes, exclude_item_id=item.id)
        existing = {row.barcode: row for row in item.barcode_rows}
        item.barcode_rows = [existing.get(code) or ItemBarcode(barcode=code) for code in barcodes]
    commit_or_rollback(db, "Could not update inventory item", item_id=item.id)
    db.refresh(item)
    return item


def delete_item(db: Session, item: InventoryItem) -> None:
    """Delete an item and its supplies. Distributions keep their snapshots and lose the link."""

    item_id = item.id
    db.delete(item)
    commit_or_rollback(db, "Could not delete inventory item", item_id=item_id)
    logger.info("inventory item deleted", extra={"extra_data": {"item_id": item_id}})


def list_supplies(db: Session, item: InventoryItem) -> list[SupplyRecord]:
    stmt = (
        select(SupplyRecord)
        .where(SupplyRecord.item_id == item.id)
        .order_by(SupplyRecord.date, SupplyRecord.id)
    )
    return db.execute(stmt).scalars().all()


def add_supply(
    db: Session,
    item: InventoryItem,
    *,
    quantity: int,
    supply_date: object,
    note: str | None = None,
) -> SupplyRecord:
    if quantity is None or int(quantity) <= 0:
        raise ValueError("quantity must be greater than zero")
    record = SupplyRecord(
        item_id=item.id,
        date=_coerce_date(supply_date, "date"),
        quantity=int(quantity),
        note=(note or "").strip() or None,
        created_at=_utcnow(),
    )
    db.add(record)
    commit_or_rollback(db, "Could not save supply record", item_id=item.id)
    db.refresh(record)
    logger.info(
        "supply recorded",
        extra={"extra_data": {"item_id": item.id, "quantity": record.quantity, "date": record.date.isoformat()}},
    )
    return record


def receive_by_barcode(
    db: Session,
    barcode: str,
    *,
    quantity: int,
    supply_date: object,
    note: str | None = None,
) -> SupplyRecord:
    item = get_item_by_barcode(db, barcode)
    if item is None:
        raise NotFound("Inventory item with barcode", barcode)
    return add_supply(db, item, quantity=quantity, supply_date=supply_date, note=note)


def get_supply(db: Session, supply_id: int) -> SupplyRecord | None:
    return db.get(SupplyRecord, supply_id)


def delete_supply(db: Session, record: SupplyRecord) -> None:
    record_id = record.id
    db.delete(record)
    commit_or_rollback(db, "Could not delete supply record", supply_id=record_id)


__all__ = [
    "add_supply",
    "create_item",
    "delete_item",
    "delete_supply",
    "get_item",
    "get_item_by_barcode",
    "get_supply",
    "list_items",
    "list_supplies",
    "receive_by_barcode",
    "require_item",
    "update_item",
]
