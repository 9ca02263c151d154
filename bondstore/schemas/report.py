"""Response models for the monthly reports. Currency values are ``Decimal`` rounded to cents."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel


class InventoryReportRow(BaseModel):
    original_item_id: str
    name: str
    opening_stock: int
    supplies_received: int
    distributed_stock: int
    closing_stock: int
    price_per_item: Decimal
    total_value: Decimal


class InventoryReport(BaseModel):
    month: str
    start: dt.date
    end: dt.date
    rows: list[InventoryReportRow]
    total_value: Decimal


class CrewReportLine(BaseModel):
    id: int
    date: dt.date
    item_name: str
    quantity: int
    unit_price_with_tax: Decimal
    line_total: Decimal


class CrewReportEntry(BaseModel):
    seafarer_id: int
    display_id: str
    name: str
    rank: str
    is_representative: bool
    distributions: list[CrewReportLine]
    total: Decimal


class CrewReport(BaseModel):
    month: str
    seafarers: list[CrewReportEntry]
    grand_total: Decimal


class DatabaseSummary(BaseModel):
    months: int
    seafarers: int
    items: int
    supplies: int
    distributions: int
