# Pydantic Schemas Package
from .shipment import (
    Shipment, PartyBlock, PartyPayload, ShipmentPayload, SignaturePayload, ShipmentCodeRequest,
)
from .training import SopCreate, SopUpdate, SopResponse, SelfTrainingCreate, TrainingDecision
from .item import ItemCreate, ItemUpdate, ItemResponse, ItemImportRequest, ItemImportResult
from .manufacturing import BatchCreate, ComponentEntry
from .user import (
    RegistrationCreate, RegistrationResponse, RegistrationApprove, ManagerAdd,
    LoginRequest, PasswordChange,
)

__all__ = [
    "Shipment", "PartyBlock", "PartyPayload", "ShipmentPayload", "SignaturePayload", "ShipmentCodeRequest",
    "SopCreate", "SopUpdate", "SopResponse", "SelfTrainingCreate", "TrainingDecision",
    "ItemCreate", "ItemUpdate", "ItemResponse", "ItemImportRequest", "ItemImportResult",
    "BatchCreate", "ComponentEntry",
    "RegistrationCreate", "RegistrationResponse", "RegistrationApprove", "ManagerAdd",
    "LoginRequest", "PasswordChange",
]
