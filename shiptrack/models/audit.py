"""
Audit Log Model
"""
from sqlalchemy import Column, String, DateTime, JSON, Uuid
from sqlalchemy.sql import func
from shiptrack.core import Base
from .base import UUIDMixin

class AuditLog(Base, UUIDMixin):
    """Audit Log for tracking changes"""
    __tablename__ = "audit_log"
    
    table_name = Column(String(100), nullable=False, index=True)
    record_id = Column(String(50), nullable=False, index=True)
    
    action = Column(String(20), nullable=False)  # INSERT, UPDATE, DELETE, STATUS_CHANGE, APPROVE, REJECT
    
    performed_by = Column(Uuid(as_uuid=True))
    performed_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    
    # Before/After data
    before_data = Column(JSON)
    after_data = Column(JSON)
