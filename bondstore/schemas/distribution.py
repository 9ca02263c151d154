from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class DistributionCreate(BaseModel):
    item_id: Optional[int] = None
    barcode: Optional[str] = None
    quantity: int = Field(gt=0)
    date: Optional[dt.date] = None

    @model_validator(mode="after")
    def validate_target(self) -> "DistributionCreate":
        if not self.item_id and not (self.barcode and self.barcode.strip()):
            raise ValueError("item_id or barcode is required")
        return self


class DistributionUpdate(BaseModel):
    quantity: Optional[int] = Field(default=None, gt=0)
    date: Optional[dt.date] = None


class DistributionOut(BaseModel):
    id: int
    seafarer_id: int
    item_id: Optional[int] = None
    original_item_id: Optional[str] = None
    item_name: str
    quantity: int
    unit_price: float
    date: dt.date
    created_at: str
    line_total: Optional[Decimal] = None

    class Config:
        from_attributes = True


class ScanLine(BaseModel):
    barcode: str = Field(min_length=1)
    quantity: int = Field(default=1, gt=0)
    date: Optional[dt.date] = None


class ScanBatch(BaseModel):
    lines: list[ScanLine] = Field(min_length=1)
