"""
Sequence Counter - one row per numbering scope
"""
from sqlalchemy import Column, String, Integer
from shiptrack.core import Base

class SequenceCounter(Base):
    __tablename__ = "sequence_counter"
    
    scope = Column(String(50), primary_key=True)  # shipment, training, dp_number
    value = Column(Integer, nullable=False, default=0)
