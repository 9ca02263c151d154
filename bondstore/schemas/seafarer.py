from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class SeafarerBase(BaseModel):
    display_id: str
    name: str
    rank: str = ""
    is_representative: bool = False


class SeafarerCreate(SeafarerBase):
    pass


class SeafarerUpdate(BaseModel):
    display_id: Optional[str] = None
    name: Optional[str] = None
    rank: Optional[str] = None
    is_representative: Optional[bool] = None


class SeafarerOut(SeafarerBase):
    id: int
    month_token: Optional[str] = None
    total_spent: float
    created_at: str

    class Config:
        from_attributes = True


class TotalRecalculation(BaseModel):
    seafarer_id: int
    previous_total: float
    total_spent: float
