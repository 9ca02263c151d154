from __future__ import annotations

from pydantic import BaseModel, Field


class StoreOut(BaseModel):
    name: str
    size_bytes: int
    modified_at: str
    active: bool

    class Config:
        from_attributes = True


class StoreName(BaseModel):
    name: str = Field(min_length=1)


class StoreRename(BaseModel):
    new_name: str = Field(min_length=1)


class BackupOut(BaseModel):
    store: str
    filename: str


class RestoreFromBackup(BaseModel):
    backup: str = Field(min_length=1)
