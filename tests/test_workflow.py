from datetime import date
from uuid import uuid4

import pytest

from shiptrack.core.exceptions import EditPermissionError, ValidationError
from shiptrack.models import Party, ShipmentStatus
from shiptrack.schemas.shipment import Shipment, PartyBlock
from shiptrack.services import workflow
from tests.conftest import SIGNATURE, draft

TODAY = date(2024, 3, 20)


def signed(record, *parties):
    for party in parties:
        record = workflow.set_party_name(record, party, f"{party.value} name")
        record = workflow.attach_signature(record, party, SIGNATURE, today=TODAY)
    return record


def stored(record):
    """Pretend the record was saved"""
    return record.model_copy(update={"doc_id": uuid4(), "id": "1", "sequence_number": 1})


class TestShipmentCode:
    def test_formula(self):
        assert workflow.compute_shipment_code("AB12", "XY99", date(2024, 3, 15)) == "AB12-XY99-20240315"

    def test_strips_non_alphanumerics_and_upper_cases(self):
        assert workflow.compute_shipment_code("ab-1/23x", "l.o.t 77", "2024-03-15") == "AB12-LOT7-20240315"

    def test_deterministic(self):
        first = workflow.compute_shipment_code("AB12", "XY99", "2024/03/15")
        assert first == workflow.compute_shipment_code("AB12", "XY99", "2024/03/15")
        assert first == "AB12-XY99-20240315"

    @pytest.mark.parametrize("item,lot,when", [
        (None, "XY99", date(2024, 3, 15)),
        ("AB12", "", date(2024, 3, 15)),
        ("AB12", "XY99", None),
    ])
    def test_empty_when_any_input_missing(self, item, lot, when):
        assert workflow.compute_shipment_code(item, lot, when) == ""

    def test_record_code_follows_fields(self):
        record = draft()
        assert record.shipment_code == "AB12-XY99-20240315"
        changed = record.model_copy(update={"lot_number": "ZZ01"})
        assert changed.shipment_code == "AB12-ZZ01-20240315"


class TestStatus:
    def test_draft_is_pending_shipment(self):
        assert draft().status == ShipmentStatus.PENDING_SHIPMENT

    def test_highest_signature_wins(self):
        record = Shipment(
            receiver=PartyBlock(),
            inspector=PartyBlock(),
            approver=PartyBlock(signature=SIGNATURE, date=TODAY),
        )
        assert workflow.derive_status(record) == ShipmentStatus.APPROVED

    def test_status_follows_signatures(self):
        record = signed(draft(), Party.RECEIVER)
        assert record.status == ShipmentStatus.PENDING_INSPECTION
        record = stored(record)
        record = signed(record, Party.INSPECTOR)
        assert record.status == ShipmentStatus.PENDING_APPROVAL
        record = signed(record, Party.APPROVER)
        assert record.status == ShipmentStatus.APPROVED


class TestCanEdit:
    @pytest.mark.parametrize("state,owner,allowed", [
        (ShipmentStatus.PENDING_SHIPMENT, Party.RECEIVER, True),
        (ShipmentStatus.PENDING_SHIPMENT, workflow.BASE, True),
        (ShipmentStatus.PENDING_SHIPMENT, Party.INSPECTOR, False),
        (ShipmentStatus.PENDING_INSPECTION, Party.INSPECTOR, True),
        (ShipmentStatus.PENDING_INSPECTION, Party.RECEIVER, False),
        (ShipmentStatus.PENDING_INSPECTION, Party.APPROVER, False),
        (ShipmentStatus.PENDING_INSPECTION, workflow.BASE, False),
        (ShipmentStatus.PENDING_APPROVAL, Party.APPROVER, True),
        (ShipmentStatus.PENDING_APPROVAL, Party.INSPECTOR, False),
        (ShipmentStatus.APPROVED, Party.APPROVER, False),
        (ShipmentStatus.APPROVED, workflow.BASE, False),
    ])
    def test_table(self, state, owner, allowed):
        assert workflow.can_edit(owner, state) is allowed

    def test_new_record_opens_receiver_and_base_only(self):
        assert workflow.can_edit(Party.RECEIVER, ShipmentStatus.PENDING_SHIPMENT, is_new=True)
        assert workflow.can_edit(workflow.BASE, ShipmentStatus.PENDING_SHIPMENT, is_new=True)
        assert not workflow.can_edit(Party.INSPECTOR, ShipmentStatus.PENDING_SHIPMENT, is_new=True)
        assert not workflow.can_edit(Party.APPROVER, ShipmentStatus.PENDING_SHIPMENT, is_new=True)

    def test_editable_owners_for_draft(self):
        assert workflow.editable_owners(draft()) == [workflow.BASE, Party.RECEIVER]


class TestCreateDraft:
    def test_lists_every_missing_field(self):
        with pytest.raises(ValidationError) as exc:
            workflow.create_draft({"shipment_date": date(2024, 3, 15), "item_number": "AB12", "quantity": 5})
        assert exc.value.missing_fields == ["item_name", "lot_number"]
        assert "item_name" in exc.value.message and "lot_number" in exc.value.message

    def test_rejects_party_fields(self):
        with pytest.raises(EditPermissionError):
            workflow.create_draft({"inspector": {"name": "x"}})

    def test_remaining_quantity_defaults_to_quantity(self):
        record = draft(quantity=12)
        assert record.remaining_quantity == 12
        assert record.id is None and record.sequence_number is None


class TestAttachSignature:
    def test_sets_date_with_signature(self):
        record = workflow.attach_signature(draft(), Party.RECEIVER, SIGNATURE, today=TODAY)
        assert record.receiver.signature == SIGNATURE
        assert record.receiver.date == TODAY

    def test_defaults_to_today(self):
        record = workflow.attach_signature(draft(), Party.RECEIVER, SIGNATURE)
        assert record.receiver.date == date.today()

    def test_empty_signature(self):
        with pytest.raises(ValidationError):
            workflow.attach_signature(draft(), Party.RECEIVER, b"")

    def test_inspector_cannot_sign_a_draft(self):
        with pytest.raises(EditPermissionError):
            workflow.attach_signature(draft(), Party.INSPECTOR, SIGNATURE)

    def test_approver_cannot_sign_pending_inspection(self):
        record = stored(signed(draft(), Party.RECEIVER))
        with pytest.raises(EditPermissionError) as exc:
            workflow.attach_signature(record, Party.APPROVER, SIGNATURE)
        assert "Pending Inspection" in exc.value.message

    def test_input_record_untouched(self):
        record = draft()
        workflow.attach_signature(record, Party.RECEIVER, SIGNATURE)
        assert record.receiver.signature is None


class TestRemoveSignature:
    def test_receiver_blocked_once_inspector_signed(self):
        record = signed(stored(signed(draft(), Party.RECEIVER)), Party.INSPECTOR)
        with pytest.raises(EditPermissionError) as exc:
            workflow.remove_signature(record, Party.RECEIVER)
        assert "inspector" in exc.value.message

    def test_latest_signature_moves_status_back(self):
        record = signed(stored(signed(draft(), Party.RECEIVER)), Party.INSPECTOR)
        record = workflow.remove_signature(record, Party.INSPECTOR)
        assert record.inspector.signature is None and record.inspector.date is None
        assert record.status == ShipmentStatus.PENDING_INSPECTION

    def test_never_after_approval(self):
        record = signed(stored(signed(draft(), Party.RECEIVER)), Party.INSPECTOR, Party.APPROVER)
        with pytest.raises(EditPermissionError):
            workflow.remove_signature(record, Party.APPROVER)

    def test_unsigned_party(self):
        with pytest.raises(EditPermissionError):
            workflow.remove_signature(draft(), Party.RECEIVER)


class TestSubmissionChecks:
    def test_missing_base_fields_listed_together(self):
        record = Shipment(
            shipment_date=date(2024, 3, 15), item_number="AB12", quantity=1,
            receiver=PartyBlock(name="Rita"),
        )
        with pytest.raises(ValidationError) as exc:
            workflow.check_submission(None, record)
        assert exc.value.missing_fields == ["item_name", "lot_number"]

    def test_acting_party_name_required(self):
        with pytest.raises(ValidationError) as exc:
            workflow.check_submission(None, draft())
        assert exc.value.missing_fields == ["receiver.name"]

    def test_other_party_field_rejected(self):
        before = stored(signed(draft(), Party.RECEIVER))
        after = workflow.set_party_name(before, Party.APPROVER, "Early Approver")
        with pytest.raises(EditPermissionError) as exc:
            workflow.check_permissions(before, after)
        assert "approver" in exc.value.message

    def test_base_fields_frozen_after_receiver_signs(self):
        before = stored(signed(draft(), Party.RECEIVER))
        after = before.model_copy(update={"item_name": "Changed"})
        with pytest.raises(EditPermissionError):
            workflow.check_permissions(before, after)

    def test_identifiers_cannot_change(self):
        before = stored(signed(draft(), Party.RECEIVER))
        after = before.model_copy(update={"sequence_number": 99})
        with pytest.raises(EditPermissionError):
            workflow.check_permissions(before, after)

    def test_approved_record_refuses_any_write(self):
        before = signed(stored(signed(draft(), Party.RECEIVER)), Party.INSPECTOR, Party.APPROVER)
        after = before.model_copy(update={"damage_notes": "late note"})
        with pytest.raises(EditPermissionError):
            workflow.check_submission(before, after)
        with pytest.raises(EditPermissionError):
            workflow.check_submission(before, before)

    def test_retraction_is_allowed(self):
        before = signed(stored(signed(draft(), Party.RECEIVER)), Party.INSPECTOR)
        after = workflow.remove_signature(before, Party.INSPECTOR)
        workflow.check_submission(before, after)

    def test_date_without_signature(self):
        record = draft().model_copy(update={"receiver": PartyBlock(name="Rita", date=TODAY)})
        with pytest.raises(ValidationError):
            workflow.check_signatures(record)
