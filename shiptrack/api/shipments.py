"""
Shipment API - records, sign-off and shipment codes
"""
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from shiptrack.core import RequestContext
from shiptrack.core.exceptions import NotFoundError
from shiptrack.models import Party, PARTY_ORDER
from shiptrack.schemas.shipment import (
    Shipment, ShipmentPayload, SignaturePayload, ShipmentCodeRequest,
)
from shiptrack.services import workflow
from shiptrack.services.attachments import decode_blob, encode_blob
from shiptrack.services.shipment_service import ShipmentService
from .auth import get_request_context, get_context_db

router = APIRouter(prefix="/shipments", tags=["shipments"])

# Payload keys that are not plain base fields
_BLOB_AND_PARTY_KEYS = {"attachment", "receiver", "inspector", "approver"}


def shipment_to_dict(shipment: Shipment, detail: bool = False) -> dict:
    data = {
        "doc_id": str(shipment.doc_id) if shipment.doc_id else None,
        "id": shipment.id,
        "sequence_number": shipment.sequence_number,
        "shipment_code": shipment.shipment_code,
        "status": shipment.status.value,
        "shipment_date": shipment.shipment_date.isoformat() if shipment.shipment_date else None,
        "item_number": shipment.item_number,
        "item_name": shipment.item_name,
        "lot_number": shipment.lot_number,
        "quantity": float(shipment.quantity) if shipment.quantity is not None else None,
        "remaining_quantity": float(shipment.remaining_quantity) if shipment.remaining_quantity is not None else None,
        "unit": shipment.unit,
        "manufacturer": shipment.manufacturer,
        "vendor": shipment.vendor,
        "transportation": shipment.transportation,
        "bill_number": shipment.bill_number,
        "expiry_date": shipment.expiry_date.isoformat() if shipment.expiry_date else None,
        "damaged": shipment.damaged,
        "damage_notes": shipment.damage_notes,
        "attachment_name": shipment.attachment_name,
        "has_attachment": shipment.attachment is not None,
        "created_at": shipment.created_at.isoformat() if shipment.created_at else None,
        "updated_at": shipment.updated_at.isoformat() if shipment.updated_at else None,
    }
    for party in PARTY_ORDER:
        block = shipment.party(party)
        data[party.value] = {
            "name": block.name,
            "date": block.date.isoformat() if block.date else None,
            "signed": block.is_signed,
        }
        if detail:
            data[party.value]["signature"] = encode_blob(block.signature)
    if detail:
        data["editable"] = [
            owner if owner == workflow.BASE else owner.value
            for owner in workflow.editable_owners(shipment)
        ]
    return data


def _apply_payload(record: Shipment, payload: ShipmentPayload, is_new: bool) -> Shipment:
    """Merge a form body into ``record``; permission checks happen on submit"""
    fields = payload.model_dump(exclude_unset=True, exclude=_BLOB_AND_PARTY_KEYS)
    if "damaged" in fields and fields["damaged"] is None:
        fields["damaged"] = False
    if "attachment" in payload.model_fields_set:
        fields["attachment"] = decode_blob(payload.attachment, "attachment")

    if is_new:
        record = workflow.create_draft(fields)
    elif fields:
        record = record.model_copy(update=fields)

    for party in PARTY_ORDER:
        block = getattr(payload, party.value)
        if block is None:
            continue
        if "name" in block.model_fields_set and block.name != record.party(party).name:
            record = workflow.set_party_name(record, party, block.name)
        signature = decode_blob(block.signature, f"{party.value}.signature")
        if signature and signature != record.party(party).signature:
            record = workflow.attach_signature(record, party, signature)
    return record


@router.get("")
def list_shipments(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_context_db)
):
    shipments, total = ShipmentService.get_shipments(db, search, status, page, per_page)
    return {
        "shipments": [shipment_to_dict(s) for s in shipments],
        "total": total,
        "page": page,
        "per_page": per_page
    }


@router.post("", status_code=201)
def create_shipment(
    payload: ShipmentPayload,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    """Receiver submission; assigns the sequence number"""
    record = _apply_payload(Shipment(), payload, is_new=True)
    saved = ShipmentService.submit(db, ctx, record)
    return shipment_to_dict(saved, detail=True)


@router.post("/code")
def shipment_code(data: ShipmentCodeRequest):
    """Preview the code a record with these values will get"""
    return {
        "shipment_code": workflow.compute_shipment_code(
            data.item_number, data.lot_number, data.shipment_date
        )
    }


@router.get("/{doc_id}")
def get_shipment(doc_id: UUID, db: Session = Depends(get_context_db)):
    return shipment_to_dict(ShipmentService.get_shipment(db, doc_id), detail=True)


@router.get("/{doc_id}/attachment")
def get_attachment(doc_id: UUID, db: Session = Depends(get_context_db)):
    shipment = ShipmentService.get_shipment(db, doc_id)
    if shipment.attachment is None:
        raise NotFoundError(f"Shipment {shipment.id} has no attachment")
    filename = shipment.attachment_name or f"shipment-{shipment.id}.pdf"
    return Response(
        content=shipment.attachment,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'}
    )


@router.put("/{doc_id}")
def update_shipment(
    doc_id: UUID,
    payload: ShipmentPayload,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    """Inspector or approver submission, or a receiver correcting a pending shipment"""
    stored = ShipmentService.get_shipment(db, doc_id)
    record = _apply_payload(stored, payload, is_new=False)
    saved = ShipmentService.submit(db, ctx, record)
    return shipment_to_dict(saved, detail=True)


@router.delete("/{doc_id}")
def delete_shipment(
    doc_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    ShipmentService.delete_shipment(db, ctx, doc_id)
    return {"success": True}


@router.post("/{doc_id}/signatures/{party}")
def sign_shipment(
    doc_id: UUID,
    party: Party,
    data: SignaturePayload,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    signature = decode_blob(data.signature, f"{party.value}.signature")
    saved = ShipmentService.sign(db, ctx, doc_id, party, signature, data.name)
    return shipment_to_dict(saved, detail=True)


@router.delete("/{doc_id}/signatures/{party}")
def unsign_shipment(
    doc_id: UUID,
    party: Party,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    saved = ShipmentService.unsign(db, ctx, doc_id, party)
    return shipment_to_dict(saved, detail=True)
