import pytest

from shiptrack.core.exceptions import EditPermissionError, NotFoundError, ValidationError
from shiptrack.schemas.item import ItemBase, ItemCreate, ItemUpdate
from shiptrack.services.item_service import ItemService, item_sort_key


def test_sort_key_is_numeric_aware():
    values = ["100", "20", "A-1", "3", "B2"]
    assert sorted(values, key=item_sort_key) == ["3", "20", "100", "A-1", "B2"]


def test_create_and_list(db, manager_ctx):
    for item_no in ("100", "20", "3"):
        ItemService.create_item(db, manager_ctx, ItemCreate(item_no=item_no, item_name=f"Item {item_no}", uom="KG"))

    assert [i.item_no for i in ItemService.get_items(db)] == ["3", "20", "100"]
    assert [i.item_no for i in ItemService.get_items(db, search="Item 2")] == ["20"]


def test_required_fields(db, manager_ctx):
    with pytest.raises(ValidationError) as exc:
        ItemService.create_item(db, manager_ctx, ItemCreate(item_no=" ", item_name="Oil"))
    assert exc.value.missing_fields == ["item_no", "uom"]


def test_item_no_is_unique(db, manager_ctx):
    item = ItemService.create_item(db, manager_ctx, ItemCreate(item_no="1", item_name="Oil", uom="KG"))
    other = ItemService.create_item(db, manager_ctx, ItemCreate(item_no="2", item_name="Gas", uom="Cylinder"))

    with pytest.raises(ValidationError):
        ItemService.create_item(db, manager_ctx, ItemCreate(item_no="1", item_name="Dup", uom="EA"))
    with pytest.raises(ValidationError):
        ItemService.update_item(db, manager_ctx, other.id, ItemUpdate(item_no="1"))

    updated = ItemService.update_item(db, manager_ctx, item.id, ItemUpdate(item_name="Sunflower Oil", active=False))
    assert updated.item_name == "Sunflower Oil" and updated.active is False


def test_delete(db, manager_ctx, shipping_ctx):
    item = ItemService.create_item(db, manager_ctx, ItemCreate(item_no="1", item_name="Oil", uom="KG"))
    with pytest.raises(EditPermissionError):
        ItemService.delete_item(db, shipping_ctx, item.id)
    ItemService.delete_item(db, manager_ctx, item.id)
    with pytest.raises(NotFoundError):
        ItemService.get_item(db, item.id)


def test_import_upserts_and_reports_bad_rows(db, manager_ctx):
    ItemService.create_item(db, manager_ctx, ItemCreate(item_no="10", item_name="Old name", uom="KG"))
    rows = [
        ItemBase(item_no="10", item_name="New name", uom="KG"),
        ItemBase(item_no="11", item_name="Menthol Crystal", uom="KG"),
        ItemBase(item_no="12", item_name="", uom="EA"),
        ItemBase(item_no="11", item_name="Menthol Crystal USP", uom="KG"),
    ]

    results = ItemService.import_items(db, manager_ctx, rows)

    assert [r.status for r in results] == ["updated", "created", "error", "updated"]
    assert "item_name" in results[2].message
    items = {i.item_no: i for i in ItemService.get_items(db)}
    assert set(items) == {"10", "11"}
    assert items["10"].item_name == "New name"
    assert items["11"].item_name == "Menthol Crystal USP"
    assert items["11"].imported_from == "excel"
