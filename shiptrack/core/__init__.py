from .config import settings
from .database import engine, test_engine, SessionLocal, TestSessionLocal, session_factory, get_db, Base
from .context import RequestContext
from .exceptions import (
    ShipTrackError, ValidationError, EditPermissionError, NotFoundError,
    StorageError, SequenceConflictError,
)

__all__ = [
    "settings", "engine", "test_engine", "SessionLocal", "TestSessionLocal",
    "session_factory", "get_db", "Base", "RequestContext",
    "ShipTrackError", "ValidationError", "EditPermissionError", "NotFoundError",
    "StorageError", "SequenceConflictError",
]
