"""
Training Service - SOP catalog, self-training submissions and manager decisions
"""
from sqlalchemy.orm import Session
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import List, Optional
from uuid import UUID
from datetime import date, datetime
import logging

from shiptrack.core.config import settings
from shiptrack.core.context import RequestContext
from shiptrack.core.exceptions import (
    EditPermissionError, NotFoundError, SequenceConflictError, StorageError, ValidationError,
)
from shiptrack.models import Sop, TrainingRecord, TrainingStatus, AuditLog
from shiptrack.schemas.training import SopCreate, SopUpdate, SelfTrainingCreate, TrainingDecision
from shiptrack.services.attachments import validate_pdf
from shiptrack.services.sequence_service import SequenceAllocator, SCOPE_TRAINING

logger = logging.getLogger(__name__)


class TrainingService:
    """Training business logic"""

    # ============== SOPs ==============

    @staticmethod
    def get_sops(db: Session, active_only: bool = True) -> List[Sop]:
        query = db.query(Sop)
        if active_only:
            query = query.filter(Sop.is_active == True)
        return query.order_by(Sop.sop_number).all()

    @staticmethod
    def create_sop(db: Session, ctx: RequestContext, data: SopCreate) -> Sop:
        if not ctx.is_manager:
            raise EditPermissionError("Only managers can maintain the SOP list")
        if db.query(Sop).filter(Sop.sop_number == data.sop_number).first():
            raise ValidationError(f"SOP {data.sop_number} already exists", missing_fields=["sop_number"])

        sop = Sop(sop_number=data.sop_number, title=data.title, revision=data.revision)
        db.add(sop)
        db.commit()
        db.refresh(sop)
        return sop

    @staticmethod
    def update_sop(db: Session, ctx: RequestContext, sop_id: UUID, data: SopUpdate) -> Sop:
        if not ctx.is_manager:
            raise EditPermissionError("Only managers can maintain the SOP list")
        sop = db.query(Sop).filter(Sop.id == sop_id).first()
        if not sop:
            raise NotFoundError(f"SOP {sop_id} not found")

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(sop, field, value)

        db.commit()
        db.refresh(sop)
        return sop

    # ============== Self training ==============

    @staticmethod
    def submit_self_training(
        db: Session,
        ctx: RequestContext,
        data: SelfTrainingCreate,
        signature: Optional[bytes],
        attachment: Optional[bytes] = None
    ) -> TrainingRecord:
        """Trainee signs off an SOP; the record waits for a manager"""
        if ctx.user_id is None:
            raise EditPermissionError("User information not loaded, please sign in again")

        missing = []
        if not data.sop_number:
            missing.append("sop_number")
        if not data.revision:
            missing.append("revision")
        if not signature:
            missing.append("trainee_signature")
        if missing:
            raise ValidationError.missing(missing)

        if attachment is not None:
            validate_pdf(attachment, settings.TRAINING_ATTACHMENT_MAX_BYTES)

        sop = None
        if data.sop_id:
            sop = db.query(Sop).filter(Sop.id == data.sop_id).first()
            if not sop:
                raise NotFoundError(f"SOP {data.sop_id} not found")

        try:
            sequence = SequenceAllocator.next_sequence(db, SCOPE_TRAINING)
            record = TrainingRecord(
                record_id=str(sequence),
                sequence_number=sequence,
                user_id=ctx.user_id,
                status=TrainingStatus.PENDING.value,
                sop_id=sop.id if sop else None,
                sop_number=data.sop_number,
                sop_title=data.sop_title or (sop.title if sop else None),
                revision=data.revision,
                trainee_name=data.trainee_name or ctx.actor_name,
                trainee_signature=signature,
                trainee_date=date.today(),
                attachment_name=data.attachment_name if attachment else None,
                attachment=attachment,
                submitted_at=datetime.utcnow(),
                is_test_data=ctx.is_test_environment,
            )
            db.add(record)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise SequenceConflictError("Another training record was submitted at the same time, please submit again") from e
        except SequenceConflictError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error submitting self training form: {e}")
            raise StorageError(f"Could not save training record: {e.__class__.__name__}") from e

        db.refresh(record)
        logger.info(f"Training record {record.record_id} submitted by {ctx.actor_name} for SOP {record.sop_number}")
        return record

    @staticmethod
    def get_user_records(db: Session, user_id: UUID) -> List[TrainingRecord]:
        """Records of one trainee, newest first"""
        return db.query(TrainingRecord)\
            .filter(TrainingRecord.user_id == user_id)\
            .order_by(TrainingRecord.submitted_at.desc())\
            .all()

    @staticmethod
    def get_pending(db: Session, ctx: RequestContext) -> List[TrainingRecord]:
        """Records waiting for a decision, oldest first"""
        TrainingService.require_manager(ctx)
        return db.query(TrainingRecord)\
            .filter(TrainingRecord.status == TrainingStatus.PENDING.value)\
            .order_by(TrainingRecord.submitted_at.asc())\
            .all()

    @staticmethod
    def get_all(
        db: Session,
        ctx: RequestContext,
        status: Optional[str] = None,
        search: Optional[str] = None
    ) -> List[TrainingRecord]:
        TrainingService.require_manager(ctx)
        query = db.query(TrainingRecord)

        if status and status != "all":
            query = query.filter(TrainingRecord.status == status)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    TrainingRecord.sop_number.ilike(search_term),
                    TrainingRecord.sop_title.ilike(search_term),
                    TrainingRecord.trainee_name.ilike(search_term)
                )
            )

        return query.order_by(TrainingRecord.submitted_at.desc()).all()

    @staticmethod
    def get_record(db: Session, record_id: UUID) -> TrainingRecord:
        record = db.query(TrainingRecord).filter(TrainingRecord.id == record_id).first()
        if not record:
            raise NotFoundError(f"Training record {record_id} not found")
        return record

    @staticmethod
    def process(
        db: Session,
        ctx: RequestContext,
        record_id: UUID,
        approve: bool,
        decision: TrainingDecision,
        signature: Optional[bytes],
        attachment: Optional[bytes] = None
    ) -> TrainingRecord:
        """
        Approve or reject a pending record. The manager's signature is
        required either way and dates the decision; only an approval may
        replace the attachment.
        """
        TrainingService.require_manager(ctx)
        verb = "approve" if approve else "reject"

        if not signature:
            raise ValidationError(
                f"{verb.capitalize()}r signature is required to {verb} this record",
                missing_fields=["action_signature"],
            )

        record = TrainingService.get_record(db, record_id)
        if record.status != TrainingStatus.PENDING.value:
            raise EditPermissionError(f"Training record {record.record_id} was already {record.status}")

        if approve and attachment is not None:
            validate_pdf(attachment, settings.TRAINING_ATTACHMENT_MAX_BYTES)

        record.status = (TrainingStatus.APPROVED if approve else TrainingStatus.REJECTED).value
        record.actor_id = ctx.user_id
        record.actor_name = ctx.actor_name
        record.action_notes = decision.notes
        record.action_signature = signature
        record.action_date = date.today()
        record.processed_at = datetime.utcnow()

        if approve and attachment is not None:
            record.attachment = attachment
            record.attachment_name = decision.attachment_name

        db.add(AuditLog(
            table_name="training_record",
            record_id=record.record_id,
            action=verb.upper(),
            performed_by=ctx.user_id,
            before_data={"status": TrainingStatus.PENDING.value},
            after_data={"status": record.status}
        ))

        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error {verb[:-1]}ing record {record_id}: {e}")
            raise StorageError(f"Failed to {verb} record: {e.__class__.__name__}") from e

        db.refresh(record)
        logger.info(f"Training record {record.record_id} {record.status} by {ctx.actor_name}")
        return record

    @staticmethod
    def require_manager(ctx: RequestContext) -> None:
        if not ctx.is_manager:
            raise EditPermissionError("Only managers can review training records")
