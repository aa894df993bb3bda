"""
Item Master - catalog of item numbers and units of measure
"""
from sqlalchemy import Column, String, Boolean
from shiptrack.core import Base
from .base import UUIDMixin, TimestampMixin

class ItemMaster(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "item_master"
    
    item_no = Column(String(50), unique=True, nullable=False)
    item_name = Column(String(200), nullable=False)
    uom = Column(String(30), nullable=False)  # KG, EA, Cylinder
    active = Column(Boolean, default=True)
    imported_from = Column(String(50))  # manual, excel
