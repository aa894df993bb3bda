# Services Package
from . import workflow
from .sequence_service import SequenceAllocator
from .shipment_service import ShipmentService
from .training_service import TrainingService
from .item_service import ItemService
from .manufacturing_service import ManufacturingService
from .user_service import UserService

__all__ = [
    "workflow",
    "SequenceAllocator",
    "ShipmentService",
    "TrainingService",
    "ItemService",
    "ManufacturingService",
    "UserService",
]
