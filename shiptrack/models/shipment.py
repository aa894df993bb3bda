"""
Shipment Record - receiving, inspection and approval sign-off
"""
from sqlalchemy import (
    Column, String, Integer, Numeric, Date, Boolean, Text, LargeBinary, Uuid
)
import enum

from shiptrack.core import Base
from .base import UUIDMixin, TimestampMixin


class ShipmentStatus(str, enum.Enum):
    PENDING_SHIPMENT = "Pending Shipment"
    PENDING_INSPECTION = "Pending Inspection"
    PENDING_APPROVAL = "Pending Approval"
    APPROVED = "Approved"


class Party(str, enum.Enum):
    RECEIVER = "receiver"
    INSPECTOR = "inspector"
    APPROVER = "approver"


# Sign-off order
PARTY_ORDER = (Party.RECEIVER, Party.INSPECTOR, Party.APPROVER)


class ShipmentRecord(Base, UUIDMixin, TimestampMixin):
    """Persisted shipment; status is a recomputed copy of the signatures"""
    __tablename__ = "shipment_record"
    
    record_id = Column(String(20), unique=True, nullable=False)  # human-readable "42"
    sequence_number = Column(Integer, unique=True, nullable=False, index=True)
    shipment_code = Column(String(50), nullable=False, index=True)  # AB12-XY99-20240315
    status = Column(String(30), nullable=False, index=True)
    
    # Shipment details
    shipment_date = Column(Date, nullable=False)
    item_number = Column(String(50), nullable=False)
    item_name = Column(String(200), nullable=False)
    lot_number = Column(String(50), nullable=False)
    quantity = Column(Numeric(14, 3), nullable=False)
    remaining_quantity = Column(Numeric(14, 3))
    unit = Column(String(30))
    manufacturer = Column(String(200))
    vendor = Column(String(200))
    transportation = Column(String(200))
    bill_number = Column(String(100))
    expiry_date = Column(Date)
    
    # Damage
    damaged = Column(Boolean, default=False)
    damage_notes = Column(Text)
    
    # PDF attachment
    attachment_name = Column(String(255))
    attachment = Column(LargeBinary)
    
    # Receiver
    receiver_name = Column(String(200))
    receiver_signature = Column(LargeBinary)
    receiver_date = Column(Date)
    
    # Inspector
    inspector_name = Column(String(200))
    inspector_signature = Column(LargeBinary)
    inspector_date = Column(Date)
    
    # Approver
    approver_name = Column(String(200))
    approver_signature = Column(LargeBinary)
    approver_date = Column(Date)
    
    created_by = Column(Uuid(as_uuid=True), nullable=True)
    is_test_data = Column(Boolean, default=False)
