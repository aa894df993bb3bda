from .base import TimestampMixin, UUIDMixin
from .master import AppUser, Role, UserRole, RegistrationRequest, RegistrationStatus
from .audit import AuditLog
from .sequence import SequenceCounter
from .shipment import ShipmentRecord, ShipmentStatus, Party, PARTY_ORDER
from .training import Sop, TrainingRecord, TrainingStatus
from .item import ItemMaster
from .manufacturing import ManufacturingBatch

__all__ = [
    # Base
    "TimestampMixin", "UUIDMixin",
    # Master
    "AppUser", "Role", "UserRole", "RegistrationRequest", "RegistrationStatus",
    # Audit
    "AuditLog",
    # Sequence
    "SequenceCounter",
    # Shipment
    "ShipmentRecord", "ShipmentStatus", "Party", "PARTY_ORDER",
    # Training
    "Sop", "TrainingRecord", "TrainingStatus",
    # Item master
    "ItemMaster",
    # Manufacturing
    "ManufacturingBatch",
]
