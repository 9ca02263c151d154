from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ItemCreate(BaseModel):
    name: str = Field(min_length=1)
    unit_price: Decimal = Field(ge=0)
    received_date: Optional[dt.date] = None
    barcodes: list[str] = Field(default_factory=list)
    initial_quantity: int = Field(default=0, ge=0)
    original_item_id: Optional[str] = None


class ItemUpdate(BaseModel):
    name: Optional[str] = None
    unit_price: Optional[Decimal] = Field(default=None, ge=0)
    received_date: Optional[dt.date] = None
    barcodes: Optional[list[str]] = None


class ItemOut(BaseModel):
    id: int
    original_item_id: str
    name: str
    unit_price: float
    received_date: dt.date
    barcodes: list[str] = Field(default_factory=list)
    created_at: str
    quantity_on_hand: Optional[int] = None

    class Config:
        from_attributes = True


class SupplyCreate(BaseModel):
    quantity: int = Field(gt=0)
    date: Optional[dt.date] = None
    note: Optional[str] = None


class ReceiveByBarcode(SupplyCreate):
    barcode: str = Field(min_length=1)


class SupplyOut(BaseModel):
    id: int
    item_id: int
    date: dt.date
    quantity: int
    note: Optional[str] = None
    created_at: str

    class Config:
        from_attributes = True


class StockLevel(BaseModel):
    original_item_id: str
    name: str
    quantity: int
