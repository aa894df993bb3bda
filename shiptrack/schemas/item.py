"""
Item Master Schemas
"""
from pydantic import BaseModel
from typing import Optional, List
from uuid import UUID

class ItemBase(BaseModel):
    item_no: Optional[str] = None
    item_name: Optional[str] = None
    uom: Optional[str] = None

class ItemCreate(ItemBase):
    active: bool = True

class ItemUpdate(ItemBase):
    active: Optional[bool] = None

class ItemResponse(BaseModel):
    id: UUID
    item_no: str
    item_name: str
    uom: str
    active: bool
    imported_from: Optional[str]

    class Config:
        from_attributes = True

class ItemImportRequest(BaseModel):
    rows: List[ItemBase]

class ItemImportResult(BaseModel):
    row: int
    item_no: Optional[str] = None
    status: str  # created, updated, error
    message: Optional[str] = None
