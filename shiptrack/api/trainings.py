"""
Training API - SOP list, self training and manager approval
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from shiptrack.core import RequestContext
from shiptrack.models import TrainingRecord
from shiptrack.schemas.training import (
    SopCreate, SopUpdate, SopResponse, SelfTrainingCreate, TrainingDecision,
)
from shiptrack.services.attachments import decode_blob, encode_blob
from shiptrack.services.training_service import TrainingService
from .auth import get_request_context, get_context_db

router = APIRouter(prefix="/trainings", tags=["trainings"])
sops_router = APIRouter(prefix="/sops", tags=["sops"])


def record_to_dict(record: TrainingRecord, detail: bool = False) -> dict:
    data = {
        "id": str(record.id),
        "record_id": record.record_id,
        "sequence_number": record.sequence_number,
        "user_id": str(record.user_id) if record.user_id else None,
        "status": record.status,
        "sop_number": record.sop_number,
        "sop_title": record.sop_title,
        "revision": record.revision,
        "trainee_name": record.trainee_name,
        "trainee_date": record.trainee_date.isoformat() if record.trainee_date else None,
        "attachment_name": record.attachment_name,
        "has_attachment": record.attachment is not None,
        "submitted_at": record.submitted_at.isoformat() if record.submitted_at else None,
        "actor_name": record.actor_name,
        "action_notes": record.action_notes,
        "action_date": record.action_date.isoformat() if record.action_date else None,
        "processed_at": record.processed_at.isoformat() if record.processed_at else None,
    }
    if detail:
        data["trainee_signature"] = encode_blob(record.trainee_signature)
        data["action_signature"] = encode_blob(record.action_signature)
        data["attachment"] = encode_blob(record.attachment)
    return data


# ============== SOPs ==============

@sops_router.get("")
def list_sops(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_context_db)
):
    sops = TrainingService.get_sops(db, active_only=not include_inactive)
    return [SopResponse.model_validate(s).model_dump(mode="json") for s in sops]


@sops_router.post("", status_code=201)
def create_sop(
    data: SopCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    sop = TrainingService.create_sop(db, ctx, data)
    return SopResponse.model_validate(sop).model_dump(mode="json")


@sops_router.put("/{sop_id}")
def update_sop(
    sop_id: UUID,
    data: SopUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    sop = TrainingService.update_sop(db, ctx, sop_id, data)
    return SopResponse.model_validate(sop).model_dump(mode="json")


# ============== Training records ==============

@router.post("", status_code=201)
def submit_training(
    data: SelfTrainingCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    record = TrainingService.submit_self_training(
        db, ctx, data,
        signature=decode_blob(data.trainee_signature, "trainee_signature"),
        attachment=decode_blob(data.attachment, "attachment"),
    )
    return record_to_dict(record)


@router.get("/mine")
def my_trainings(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    return [record_to_dict(r) for r in TrainingService.get_user_records(db, ctx.user_id)]


@router.get("/pending")
def pending_trainings(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    return [record_to_dict(r) for r in TrainingService.get_pending(db, ctx)]


@router.get("")
def list_trainings(
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    return [record_to_dict(r) for r in TrainingService.get_all(db, ctx, status, search)]


@router.get("/{record_id}")
def get_training(
    record_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    record = TrainingService.get_record(db, record_id)
    if record.user_id != ctx.user_id:
        TrainingService.require_manager(ctx)
    return record_to_dict(record, detail=True)


@router.post("/{record_id}/approve")
def approve_training(
    record_id: UUID,
    data: TrainingDecision,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    record = TrainingService.process(
        db, ctx, record_id, True, data,
        signature=decode_blob(data.signature, "signature"),
        attachment=decode_blob(data.attachment, "attachment"),
    )
    return record_to_dict(record)


@router.post("/{record_id}/reject")
def reject_training(
    record_id: UUID,
    data: TrainingDecision,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    record = TrainingService.process(
        db, ctx, record_id, False, data,
        signature=decode_blob(data.signature, "signature"),
    )
    return record_to_dict(record)
