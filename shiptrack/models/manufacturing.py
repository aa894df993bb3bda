"""
Manufacturing Batch - DP-numbered production form
"""
from sqlalchemy import Column, String, Integer, Boolean, Date, JSON, Uuid
from shiptrack.core import Base
from .base import UUIDMixin, TimestampMixin

class ManufacturingBatch(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "manufacturing_batch"
    
    dp_number = Column(String(20), unique=True, nullable=False)  # DP26001
    dp_sequence = Column(Integer, unique=True, nullable=False)
    product_line = Column(String(50), nullable=False, index=True)
    manufacturing_date = Column(Date)
    
    # {"Vitamin D3": {"lot_number": ..., "item_number": ..., "exp_date": ..., "release_date": ..., "quantity": ...}}
    components = Column(JSON, nullable=False, default=dict)
    
    created_by = Column(Uuid(as_uuid=True))
    is_test_data = Column(Boolean, default=False)
