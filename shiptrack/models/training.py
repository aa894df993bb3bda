"""
Training Models - SOP catalog and employee training records
"""
from sqlalchemy import Column, String, Integer, Boolean, Text, Date, DateTime, LargeBinary, Uuid
from datetime import datetime
import enum

from shiptrack.core import Base
from .base import UUIDMixin, TimestampMixin


class TrainingStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Sop(Base, UUIDMixin, TimestampMixin):
    """Standard Operating Procedure"""
    __tablename__ = "sop"
    
    sop_number = Column(String(50), unique=True, nullable=False)
    title = Column(String(300), nullable=False)
    revision = Column(String(20))
    is_active = Column(Boolean, default=True)


class TrainingRecord(Base, UUIDMixin):
    """Self-training submission, approved or rejected by a manager"""
    __tablename__ = "training_record"
    
    record_id = Column(String(20), unique=True, nullable=False)
    sequence_number = Column(Integer, unique=True, nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    status = Column(String(20), default=TrainingStatus.PENDING.value, nullable=False, index=True)
    
    # SOP snapshot
    sop_id = Column(Uuid(as_uuid=True))
    sop_number = Column(String(50), nullable=False)
    sop_title = Column(String(300))
    revision = Column(String(20), nullable=False)
    
    # Trainee
    trainee_name = Column(String(200))
    trainee_signature = Column(LargeBinary, nullable=False)
    trainee_date = Column(Date, nullable=False)
    
    attachment_name = Column(String(255))
    attachment = Column(LargeBinary)
    
    submitted_at = Column(DateTime, default=datetime.utcnow, index=True)
    
    # Manager decision (null until processed)
    actor_id = Column(Uuid(as_uuid=True))
    actor_name = Column(String(200))
    action_notes = Column(Text)
    action_signature = Column(LargeBinary)
    action_date = Column(Date)
    processed_at = Column(DateTime)
    
    is_test_data = Column(Boolean, default=False)
