"""
Item Master API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from shiptrack.core import RequestContext
from shiptrack.schemas.item import ItemCreate, ItemUpdate, ItemResponse, ItemImportRequest
from shiptrack.services.item_service import ItemService
from .auth import get_request_context, get_context_db

router = APIRouter(prefix="/items", tags=["items"])


@router.get("")
def list_items(
    search: Optional[str] = Query(None),
    active_only: bool = Query(False),
    db: Session = Depends(get_context_db)
):
    items = ItemService.get_items(db, search, active_only)
    return [ItemResponse.model_validate(i).model_dump(mode="json") for i in items]


@router.post("", status_code=201)
def create_item(
    data: ItemCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    item = ItemService.create_item(db, ctx, data)
    return ItemResponse.model_validate(item).model_dump(mode="json")


@router.post("/import")
def import_items(
    data: ItemImportRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    results = ItemService.import_items(db, ctx, data.rows)
    return {
        "total": len(results),
        "created": sum(1 for r in results if r.status == "created"),
        "updated": sum(1 for r in results if r.status == "updated"),
        "errors": sum(1 for r in results if r.status == "error"),
        "results": [r.model_dump() for r in results],
    }


@router.put("/{item_id}")
def update_item(
    item_id: UUID,
    data: ItemUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    item = ItemService.update_item(db, ctx, item_id, data)
    return ItemResponse.model_validate(item).model_dump(mode="json")


@router.delete("/{item_id}")
def delete_item(
    item_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_context_db)
):
    ItemService.delete_item(db, ctx, item_id)
    return {"success": True}
