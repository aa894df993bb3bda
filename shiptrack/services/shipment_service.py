"""
Shipment Service - persistence around the workflow engine
"""
from sqlalchemy.orm import Session
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import List, Optional, Tuple
from uuid import UUID
import logging

from shiptrack.core.context import RequestContext
from shiptrack.core.exceptions import (
    EditPermissionError, NotFoundError, SequenceConflictError, StorageError,
)
from shiptrack.models import ShipmentRecord, AuditLog, PARTY_ORDER
from shiptrack.schemas.shipment import Shipment, PartyBlock
from shiptrack.services import workflow
from shiptrack.services.attachments import validate_pdf
from shiptrack.services.sequence_service import SequenceAllocator, SCOPE_SHIPMENT
from shiptrack.core.config import settings

logger = logging.getLogger(__name__)

# Allocation is retried once when a concurrent creator wins the race
MAX_SUBMIT_ATTEMPTS = 2


def to_domain(row: ShipmentRecord) -> Shipment:
    """ORM row -> frozen workflow record"""
    parties = {
        party.value: PartyBlock(
            name=getattr(row, f"{party.value}_name"),
            signature=getattr(row, f"{party.value}_signature"),
            date=getattr(row, f"{party.value}_date"),
        )
        for party in PARTY_ORDER
    }
    return Shipment(
        doc_id=row.id,
        id=row.record_id,
        sequence_number=row.sequence_number,
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
        is_test_data=bool(row.is_test_data),
        damaged=bool(row.damaged),
        **{name: getattr(row, name) for name in workflow.BASE_FIELDS if name != "damaged"},
        **parties,
    )


def _apply(row: ShipmentRecord, record: Shipment) -> None:
    """Copy editable and derived fields onto the row"""
    for name in workflow.BASE_FIELDS:
        setattr(row, name, getattr(record, name))
    if row.remaining_quantity is None:
        row.remaining_quantity = record.quantity
    for party in PARTY_ORDER:
        block = record.party(party)
        setattr(row, f"{party.value}_name", block.name)
        setattr(row, f"{party.value}_signature", block.signature)
        setattr(row, f"{party.value}_date", block.date)
    # Derived values are recomputed on every write
    row.shipment_code = record.shipment_code
    row.status = record.status.value


class ShipmentService:
    """Shipment business logic"""

    @staticmethod
    def get_shipments(
        db: Session,
        search: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        per_page: int = 50
    ) -> Tuple[List[Shipment], int]:
        """Get shipments with filters and pagination, newest sequence first"""
        query = db.query(ShipmentRecord)

        if status and status != "all":
            query = query.filter(ShipmentRecord.status == status)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    ShipmentRecord.shipment_code.ilike(search_term),
                    ShipmentRecord.item_name.ilike(search_term)
                )
            )

        try:
            total = query.count()
            rows = query.order_by(ShipmentRecord.sequence_number.desc())\
                .offset((page - 1) * per_page)\
                .limit(per_page)\
                .all()
        except SQLAlchemyError as e:
            logger.error(f"Error listing shipments: {e}")
            raise StorageError(f"Could not load shipments: {e.__class__.__name__}") from e

        return [to_domain(row) for row in rows], total

    @staticmethod
    def get_shipment(db: Session, doc_id: UUID) -> Shipment:
        try:
            row = db.query(ShipmentRecord).filter(ShipmentRecord.id == doc_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Error loading shipment {doc_id}: {e}")
            raise StorageError(f"Could not load shipment: {e.__class__.__name__}") from e
        if not row:
            raise NotFoundError(f"Shipment {doc_id} not found")
        return to_domain(row)

    @staticmethod
    def submit(db: Session, ctx: RequestContext, record: Shipment) -> Shipment:
        """
        Validate and persist ``record``. The first save assigns the sequence
        number and id. Returns the stored record; on failure the caller's
        ``record`` is untouched and can be submitted again.
        """
        stored = None
        if not record.is_draft:
            stored = ShipmentService.get_shipment(db, record.doc_id)

        workflow.check_submission(stored, record)
        if record.attachment is not None and (stored is None or stored.attachment != record.attachment):
            validate_pdf(record.attachment, settings.SHIPMENT_ATTACHMENT_MAX_BYTES)

        for attempt in range(1, MAX_SUBMIT_ATTEMPTS + 1):
            try:
                row = ShipmentService._write(db, ctx, stored, record)
                db.commit()
                db.refresh(row)
                break
            except (SequenceConflictError, IntegrityError) as e:
                db.rollback()
                if stored is not None:
                    logger.error(f"Error updating shipment {record.id}: {e}")
                    raise StorageError(f"Could not save shipment: {e.__class__.__name__}") from e
                if attempt == MAX_SUBMIT_ATTEMPTS:
                    logger.error(f"Shipment sequence conflict after {attempt} attempt(s): {e}")
                    if isinstance(e, SequenceConflictError):
                        raise
                    raise SequenceConflictError(
                        "Another shipment was created at the same time, please submit again"
                    ) from e
                logger.warning(f"Shipment sequence conflict, retrying allocation: {e}")
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Error saving shipment {record.id or record.shipment_code}: {e}")
                raise StorageError(f"Could not save shipment: {e.__class__.__name__}") from e

        saved = to_domain(row)
        logger.info(
            f"Shipment {saved.id} ({saved.shipment_code}) saved by {ctx.actor_name}: {saved.status.value}"
        )
        return saved

    @staticmethod
    def _write(
        db: Session,
        ctx: RequestContext,
        stored: Optional[Shipment],
        record: Shipment
    ) -> ShipmentRecord:
        if stored is None:
            sequence = SequenceAllocator.next_sequence(db, SCOPE_SHIPMENT)
            row = ShipmentRecord(
                record_id=str(sequence),
                sequence_number=sequence,
                created_by=ctx.user_id,
                is_test_data=ctx.is_test_environment,
            )
            db.add(row)
            old_status = None
        else:
            row = db.query(ShipmentRecord).filter(ShipmentRecord.id == stored.doc_id).first()
            if row is None:
                raise NotFoundError(f"Shipment {stored.doc_id} not found")
            old_status = row.status

        _apply(row, record)
        db.flush()

        if old_status != row.status:
            db.add(AuditLog(
                table_name="shipment_record",
                record_id=row.record_id,
                action="STATUS_CHANGE" if old_status else "INSERT",
                performed_by=ctx.user_id,
                before_data={"status": old_status} if old_status else None,
                after_data={"status": row.status, "shipment_code": row.shipment_code}
            ))
        return row

    @staticmethod
    def sign(
        db: Session,
        ctx: RequestContext,
        doc_id: UUID,
        party,
        signature: bytes,
        name: Optional[str] = None
    ) -> Shipment:
        """Attach a party signature to a stored shipment and save it"""
        record = ShipmentService.get_shipment(db, doc_id)
        if name is not None:
            if not workflow.can_edit(party, record.status):
                raise EditPermissionError(
                    f"cannot edit {party.value} fields while status is {record.status.value}"
                )
            record = workflow.set_party_name(record, party, name)
        record = workflow.attach_signature(record, party, signature)
        return ShipmentService.submit(db, ctx, record)

    @staticmethod
    def unsign(db: Session, ctx: RequestContext, doc_id: UUID, party) -> Shipment:
        """Remove the latest signature from a stored shipment and save it"""
        record = ShipmentService.get_shipment(db, doc_id)
        record = workflow.remove_signature(record, party)
        return ShipmentService.submit(db, ctx, record)

    @staticmethod
    def delete_shipment(db: Session, ctx: RequestContext, doc_id: UUID) -> None:
        """Hard delete, administrators only"""
        if not ctx.is_admin:
            raise EditPermissionError("Only administrators can delete shipment records")

        row = db.query(ShipmentRecord).filter(ShipmentRecord.id == doc_id).first()
        if not row:
            raise NotFoundError(f"Shipment {doc_id} not found")

        db.add(AuditLog(
            table_name="shipment_record",
            record_id=row.record_id,
            action="DELETE",
            performed_by=ctx.user_id,
            before_data={"status": row.status, "shipment_code": row.shipment_code}
        ))
        db.delete(row)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"Could not delete shipment: {e.__class__.__name__}") from e
        logger.info(f"Shipment {row.record_id} deleted by {ctx.actor_name}")
