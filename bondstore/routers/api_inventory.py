from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.errors import value_errors_as_422
from ..core.exceptions import NotFound
from ..core.months import month_range
from ..crud.inventory import (
    add_supply,
    create_item,
    delete_item,
    delete_supply,
    get_item_by_barcode,
    get_supply,
    list_items,
    list_supplies,
    receive_by_barcode,
    require_item,
    update_item,
)
from ..db.session import get_db
from ..deps.auth import require_api_key
from ..models.inventory import InventoryItem
from ..schemas.inventory import (
    ItemCreate,
    ItemOut,
    ItemUpdate,
    ReceiveByBarcode,
    StockLevel,
    SupplyCreate,
    SupplyOut,
)
from ..services.ledger import quantity_on_hand, stock_levels

router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"], dependencies=[Depends(require_api_key)])


def _item_to_schema(db: Session, item: InventoryItem, as_of: date | None = None) -> ItemOut:
    on_hand = quantity_on_hand(db, item.original_item_id, as_of or date.today())
    return ItemOut.model_validate(item, from_attributes=True).model_copy(update={"quantity_on_hand": on_hand})


@router.get("/items", response_model=list[ItemOut])
def api_list_items(month: Optional[str] = None, db: Session = Depends(get_db)):
    """All catalog items, or only those visible in ``month`` with stock as of its last day."""

    as_of = month_range(month).end if month else None
    return [_item_to_schema(db, item, as_of) for item in list_items(db, month)]


@router.post("/items", response_model=ItemOut, status_code=201)
def api_create_item(payload: ItemCreate, db: Session = Depends(get_db)):
    with value_errors_as_422():
        item = create_item(db, payload.model_dump(exclude_none=True))
    return _item_to_schema(db, item)


@router.get("/items/by-barcode/{barcode}", response_model=ItemOut)
def api_get_item_by_barcode(barcode: str, db: Session = Depends(get_db)):
    item = get_item_by_barcode(db, barcode)
    if item is None:
        raise NotFound("Inventory item with barcode", barcode)
    return _item_to_schema(db, item)


@router.get("/items/{item_id}", response_model=ItemOut)
def api_get_item(item_id: int, db: Session = Depends(get_db)):
    return _item_to_schema(db, require_item(db, item_id))


@router.patch("/items/{item_id}", response_model=ItemOut)
def api_update_item(item_id: int, payload: ItemUpdate, db: Session = Depends(get_db)):
    item = require_item(db, item_id)
    with value_errors_as_422():
        item = update_item(db, item, payload.model_dump(exclude_unset=True))
    return _item_to_schema(db, item)


@router.delete("/items/{item_id}")
def api_delete_item(item_id: int, db: Session = Depends(get_db)):
    delete_item(db, require_item(db, item_id))
    return {"status": "deleted"}


@router.get("/items/{item_id}/supplies", response_model=list[SupplyOut])
def api_list_supplies(item_id: int, db: Session = Depends(get_db)):
    return list_supplies(db, require_item(db, item_id))


@router.post("/items/{item_id}/supplies", response_model=SupplyOut, status_code=201)
def api_add_supply(item_id: int, payload: SupplyCreate, db: Session = Depends(get_db)):
    item = require_item(db, item_id)
    with value_errors_as_422():
        return add_supply(
            db,
            item,
            quantity=payload.quantity,
            supply_date=payload.date or date.today(),
            note=payload.note,
        )


@router.delete("/supplies/{supply_id}")
def api_delete_supply(supply_id: int, db: Session = Depends(get_db)):
    record = get_supply(db, supply_id)
    if record is None:
        raise NotFound("Supply record", supply_id)
    delete_supply(db, record)
    return {"status": "deleted"}


@router.post("/receive", response_model=SupplyOut, status_code=201)
def api_receive_inventory(payload: ReceiveByBarcode, db: Session = Depends(get_db)):
    with value_errors_as_422():
        return receive_by_barcode(
            db,
            payload.barcode,
            quantity=payload.quantity,
            supply_date=payload.date or date.today(),
            note=payload.note,
        )


@router.get("/stock", response_model=list[StockLevel])
def api_stock_levels(as_of: Optional[date] = None, db: Session = Depends(get_db)):
    cutoff = as_of or date.today()
    names = {item.original_item_id: item.name for item in list_items(db)}
    levels = stock_levels(db, cutoff)
    return sorted(
        (
            StockLevel(original_item_id=logical_id, name=names.get(logical_id, logical_id), quantity=quantity)
            for logical_id, quantity in levels.items()
        ),
        key=lambda level: (level.name, level.original_item_id),
    )
