"""
Manufacturing API - product lines and DP-numbered batches
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from shiptrack.core import RequestContext
from shiptrack.models import ManufacturingBatch
from shiptrack.schemas.manufacturing import BatchCreate
from shiptrack.services.manufacturing_service import ManufacturingService
from .auth import get_request_context, get_context_db

router = APIRouter(prefix="/manufacturing", tags=["manufacturing"])


def batch_to_dict(batch: ManufacturingBatch) -> dict:
    return {
        "id": str(batch.id),
        "dp_number": batch.dp_number,
        "product_line": batch.product_line,
        "manufacturing_date": batch.manufacturing_date.isoformat() if batch.manufacturing_date else None,
        "components": batch.components,
        "created_by": str(batch.created_by) if batch.created_by else None,
        "created_at": batch.created_at.isoformat() if batch.created_at else None,
    }


@router.get("/product-lines")
def list_product_lines():
    return ManufacturingService.get_product_lines()


@router.get("/next-dp-number")
def next_dp_number(db: Session = Depends(get_context_db)):
    return {"dp_number": ManufacturingService.next_dp_number(db)}


@router.get("/batches")
def list_batches(
    product_line: Optional[str] = Query(None),
    db: Session = Depends(get_context_db)
):
    return [batch_to_dict(b) for b in ManufacturingService.get_batches(db, product_line)]


@router.post("/batches", status_code=201)
def create_batch(
    data: BatchCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    return batch_to_dict(ManufacturingService.create_batch(db, ctx, data))
