"""
Sequence Allocator - next human-readable number per record type

Each scope owns a row in ``sequence_counter``. Allocation increments that row
inside the caller's transaction, so two creators can never read the same
value: the UPDATE holds the row (or, on SQLite, the database) until commit.
The first allocation for a scope seeds the counter from the highest number
already stored, so existing data keeps counting from where it left off.
"""
from sqlalchemy.orm import Session
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from datetime import datetime
from typing import Optional
import logging

from shiptrack.core.exceptions import SequenceConflictError
from shiptrack.models import SequenceCounter, ShipmentRecord, TrainingRecord, ManufacturingBatch

logger = logging.getLogger(__name__)

SCOPE_SHIPMENT = "shipment"
SCOPE_TRAINING = "training"
SCOPE_DP_NUMBER = "dp_number"

# Column holding the allocated number for each scope
SCOPE_COLUMNS = {
    SCOPE_SHIPMENT: ShipmentRecord.sequence_number,
    SCOPE_TRAINING: TrainingRecord.sequence_number,
    SCOPE_DP_NUMBER: ManufacturingBatch.dp_sequence,
}


class SequenceAllocator:
    """Atomic per-scope counters"""

    @staticmethod
    def current_max(db: Session, scope: str) -> int:
        """Highest number already stored for the scope, 0 when empty"""
        column = SCOPE_COLUMNS[scope]
        return db.query(func.max(column)).scalar() or 0

    @staticmethod
    def next_sequence(db: Session, scope: str) -> int:
        """
        Reserve the next number for ``scope``. The reservation becomes
        permanent when the caller commits and is released on rollback.
        """
        if scope not in SCOPE_COLUMNS:
            raise ValueError(f"Unknown sequence scope: {scope}")

        result = db.execute(
            update(SequenceCounter)
            .where(SequenceCounter.scope == scope)
            .values(value=SequenceCounter.value + 1)
        )

        if result.rowcount == 0:
            seed = SequenceAllocator.current_max(db, scope)
            db.add(SequenceCounter(scope=scope, value=seed + 1))
            try:
                db.flush()
            except IntegrityError as e:
                # Another creator inserted the counter row first
                raise SequenceConflictError(
                    f"Sequence '{scope}' was initialised concurrently, please retry"
                ) from e
            logger.info(f"Initialised sequence '{scope}' at {seed + 1}")
            return seed + 1

        value = db.query(SequenceCounter.value).filter(SequenceCounter.scope == scope).scalar()
        return value

    @staticmethod
    def peek_next(db: Session, scope: str) -> int:
        """Number the next allocation would return, without reserving it"""
        counter = db.query(SequenceCounter.value).filter(SequenceCounter.scope == scope).scalar()
        if counter is None:
            return SequenceAllocator.current_max(db, scope) + 1
        return counter + 1

    @staticmethod
    def format_dp_number(sequence: int, when: Optional[datetime] = None) -> str:
        """DP + two-digit year + three-digit counter, e.g. DP26007"""
        year = (when or datetime.now()).strftime("%y")
        return f"DP{year}{sequence:03d}"

    @staticmethod
    def next_dp_number(db: Session) -> str:
        """Reserve the next manufacturing DP number"""
        return SequenceAllocator.format_dp_number(
            SequenceAllocator.next_sequence(db, SCOPE_DP_NUMBER)
        )
