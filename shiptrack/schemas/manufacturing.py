"""
Manufacturing Schemas
"""
from pydantic import BaseModel
from typing import Optional, Dict
from datetime import date

class ComponentEntry(BaseModel):
    lot_number: Optional[str] = None
    item_number: Optional[str] = None
    exp_date: Optional[date] = None
    release_date: Optional[date] = None
    quantity: Optional[float] = None

class BatchCreate(BaseModel):
    product_line: str
    manufacturing_date: Optional[date] = None
    components: Dict[str, ComponentEntry] = {}
