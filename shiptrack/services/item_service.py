"""
Item Master Service - catalog CRUD and bulk import
"""
from sqlalchemy.orm import Session
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional
from uuid import UUID
import logging

from shiptrack.core.context import RequestContext
from shiptrack.core.exceptions import EditPermissionError, NotFoundError, StorageError, ValidationError
from shiptrack.models import ItemMaster
from shiptrack.schemas.item import ItemBase, ItemCreate, ItemUpdate, ItemImportResult

logger = logging.getLogger(__name__)

REQUIRED_ITEM_FIELDS = ("item_no", "item_name", "uom")


def item_sort_key(item_no: str):
    """Numeric item numbers sort by value and ahead of text ones"""
    value = (item_no or "").strip()
    if value.isdigit():
        return (0, int(value), value)
    return (1, 0, value)


def _clean(data: ItemBase) -> dict:
    values = {
        field: (getattr(data, field) or "").strip()
        for field in REQUIRED_ITEM_FIELDS
    }
    missing = [field for field, value in values.items() if not value]
    if missing:
        raise ValidationError.missing(missing)
    return values


class ItemService:
    """Item master business logic"""

    @staticmethod
    def get_items(
        db: Session,
        search: Optional[str] = None,
        active_only: bool = False
    ) -> List[ItemMaster]:
        query = db.query(ItemMaster)

        if active_only:
            query = query.filter(ItemMaster.active == True)

        if search:
            search_term = f"%{search}%"
            query = query.filter(
                or_(
                    ItemMaster.item_no.ilike(search_term),
                    ItemMaster.item_name.ilike(search_term)
                )
            )

        return sorted(query.all(), key=lambda item: item_sort_key(item.item_no))

    @staticmethod
    def get_item(db: Session, item_id: UUID) -> ItemMaster:
        item = db.query(ItemMaster).filter(ItemMaster.id == item_id).first()
        if not item:
            raise NotFoundError(f"Item {item_id} not found")
        return item

    @staticmethod
    def get_item_by_no(db: Session, item_no: str) -> Optional[ItemMaster]:
        return db.query(ItemMaster).filter(ItemMaster.item_no == item_no).first()

    @staticmethod
    def create_item(db: Session, ctx: RequestContext, data: ItemCreate) -> ItemMaster:
        ItemService._require_manager(ctx)
        values = _clean(data)

        if ItemService.get_item_by_no(db, values["item_no"]):
            raise ValidationError(
                f"Item number {values['item_no']} already exists",
                missing_fields=["item_no"],
            )

        item = ItemMaster(active=data.active, imported_from="manual", **values)
        db.add(item)
        ItemService._commit(db, f"create item {values['item_no']}")
        db.refresh(item)
        return item

    @staticmethod
    def update_item(db: Session, ctx: RequestContext, item_id: UUID, data: ItemUpdate) -> ItemMaster:
        ItemService._require_manager(ctx)
        item = ItemService.get_item(db, item_id)

        update_data = data.model_dump(exclude_unset=True)
        for field in REQUIRED_ITEM_FIELDS:
            if field in update_data:
                value = (update_data[field] or "").strip()
                if not value:
                    raise ValidationError.missing([field])
                update_data[field] = value

        new_no = update_data.get("item_no")
        if new_no and new_no != item.item_no and ItemService.get_item_by_no(db, new_no):
            raise ValidationError(f"Item number {new_no} already exists", missing_fields=["item_no"])

        for field, value in update_data.items():
            setattr(item, field, value)

        ItemService._commit(db, f"update item {item.item_no}")
        db.refresh(item)
        return item

    @staticmethod
    def delete_item(db: Session, ctx: RequestContext, item_id: UUID) -> None:
        ItemService._require_manager(ctx)
        item = ItemService.get_item(db, item_id)
        db.delete(item)
        ItemService._commit(db, f"delete item {item.item_no}")
        logger.info(f"Item {item.item_no} deleted by {ctx.actor_name}")

    @staticmethod
    def import_items(
        db: Session,
        ctx: RequestContext,
        rows: List[ItemBase],
        source: str = "excel"
    ) -> List[ItemImportResult]:
        """
        Upsert parsed spreadsheet rows by item number. Bad rows are reported
        and skipped; the good ones are committed together.
        """
        ItemService._require_manager(ctx)
        results = []
        seen = {}

        for index, row in enumerate(rows, start=1):
            try:
                values = _clean(row)
            except ValidationError as e:
                results.append(ItemImportResult(row=index, item_no=row.item_no, status="error", message=e.message))
                continue

            item = seen.get(values["item_no"]) or ItemService.get_item_by_no(db, values["item_no"])
            if item:
                item.item_name = values["item_name"]
                item.uom = values["uom"]
                status = "updated"
            else:
                item = ItemMaster(imported_from=source, active=True, **values)
                db.add(item)
                status = "created"
            seen[values["item_no"]] = item
            results.append(ItemImportResult(row=index, item_no=values["item_no"], status=status))

        ItemService._commit(db, "import items")
        created = sum(1 for r in results if r.status == "created")
        errors = sum(1 for r in results if r.status == "error")
        logger.info(f"Item import by {ctx.actor_name}: {len(rows)} rows, {created} created, {errors} errors")
        return results

    @staticmethod
    def _commit(db: Session, action: str) -> None:
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise StorageError(f"Failed to {action}: {e.__class__.__name__}") from e

    @staticmethod
    def _require_manager(ctx: RequestContext) -> None:
        if not ctx.is_manager:
            raise EditPermissionError("Only managers can change the item master")
