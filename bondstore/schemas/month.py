from __future__ import annotations

from pydantic import BaseModel, Field


class MonthCreate(BaseModel):
    month_id: str = Field(description="Month token in YYYY-MM form")


class MonthOut(BaseModel):
    id: int
    month_id: str
    created_at: str
    seafarer_count: int = 0

    class Config:
        from_attributes = True
