"""
Domain errors raised by the services layer.

The API layer maps each class to an HTTP status in ``shiptrack.api.errors``.
"""
from typing import Iterable, List, Optional


class ShipTrackError(Exception):
    """Base class for all service errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ShipTrackError):
    """Required data missing or malformed"""

    def __init__(self, message: str, missing_fields: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.missing_fields: List[str] = list(missing_fields or [])

    @classmethod
    def missing(cls, fields: Iterable[str]) -> "ValidationError":
        fields = list(fields)
        return cls(
            f"Please fill in all required fields: {', '.join(fields)}",
            missing_fields=fields,
        )


class EditPermissionError(ShipTrackError):
    """Write to a field or record the caller is not allowed to change"""


class NotFoundError(ShipTrackError):
    """Record does not exist"""


class StorageError(ShipTrackError):
    """Database unreachable or the write was rejected"""


class SequenceConflictError(ShipTrackError):
    """Two allocations raced for the same sequence number"""
