"""
Shipment Workflow Engine

Pure functions over ``Shipment`` records: status derivation, per-state edit
permissions, shipment code generation and signature handling. Nothing here
touches the database; ``ShipmentService`` persists the results.

Sign-off order is receiver -> inspector -> approver. The status is a function
of which signatures are present, and each status unlocks exactly one party:

    Pending Shipment    receiver (+ base fields)
    Pending Inspection  inspector
    Pending Approval    approver
    Approved            nothing
"""
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple, Union

from shiptrack.core.exceptions import EditPermissionError, ValidationError
from shiptrack.models.shipment import ShipmentStatus, Party, PARTY_ORDER
from shiptrack.schemas.shipment import Shipment, PartyBlock

# Owner tag for non-party fields
BASE = "base"

FieldOwner = Union[Party, str]

BASE_FIELDS = (
    "shipment_date", "item_number", "item_name", "lot_number", "quantity",
    "remaining_quantity", "unit", "manufacturer", "vendor", "transportation",
    "bill_number", "expiry_date", "damaged", "damage_notes",
    "attachment_name", "attachment",
)
REQUIRED_BASE_FIELDS = ("shipment_date", "item_number", "item_name", "lot_number", "quantity")
PARTY_FIELDS = ("name", "signature", "date")

# Assigned once at creation, never written by callers
IMMUTABLE_FIELDS = ("doc_id", "id", "sequence_number", "created_by", "created_at")

# Party whose fields each state unlocks
EDITABLE_PARTY = {
    ShipmentStatus.PENDING_SHIPMENT: Party.RECEIVER,
    ShipmentStatus.PENDING_INSPECTION: Party.INSPECTOR,
    ShipmentStatus.PENDING_APPROVAL: Party.APPROVER,
    ShipmentStatus.APPROVED: None,
}

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def compute_shipment_code(
    item_number: Optional[str],
    lot_number: Optional[str],
    shipment_date: Union[date, str, None],
) -> str:
    """
    Build the shipment code, e.g. ``AB12-XY99-20240315``.

    First four alphanumeric characters of the item number and of the lot
    number, then the date with separators stripped, upper-cased and joined
    with hyphens. Returns an empty string while any input is missing.
    """
    if not item_number or not lot_number or not shipment_date:
        return ""

    if isinstance(shipment_date, date):
        date_str = shipment_date.strftime("%Y%m%d")
    else:
        date_str = re.sub(r"[-/.\s]", "", str(shipment_date))

    item_part = _NON_ALNUM.sub("", item_number)[:4]
    lot_part = _NON_ALNUM.sub("", lot_number)[:4]
    return f"{item_part}-{lot_part}-{date_str}".upper()


def derive_status(record: Shipment) -> ShipmentStatus:
    """Highest-priority signature wins"""
    if record.approver.is_signed:
        return ShipmentStatus.APPROVED
    if record.inspector.is_signed:
        return ShipmentStatus.PENDING_APPROVAL
    if record.receiver.is_signed:
        return ShipmentStatus.PENDING_INSPECTION
    return ShipmentStatus.PENDING_SHIPMENT


def can_edit(owner: FieldOwner, state: ShipmentStatus, is_new: bool = False) -> bool:
    """
    Whether fields owned by ``owner`` (a party or ``BASE``) may be written
    while the record is in ``state``. A new record only opens the receiver
    block and the base fields, whatever its computed state.
    """
    if is_new:
        return owner == BASE or owner == Party.RECEIVER

    editable = EDITABLE_PARTY[ShipmentStatus(state)]
    if editable is None:
        return False
    if owner == BASE:
        # Base fields freeze as soon as the receiver signs
        return editable == Party.RECEIVER
    return Party(owner) == editable


def editable_owners(record: Shipment) -> List[FieldOwner]:
    """Owners whose fields are currently open, for form rendering"""
    owners = [BASE] + list(PARTY_ORDER)
    return [
        owner for owner in owners
        if can_edit(owner, record.status, is_new=record.is_draft)
    ]


def _state_label(state: ShipmentStatus) -> str:
    return ShipmentStatus(state).value


def _ensure_mutable(record: Shipment) -> None:
    if record.status == ShipmentStatus.APPROVED:
        raise EditPermissionError(
            f"Shipment {record.id or record.shipment_code} is approved and can no longer be changed"
        )


def create_draft(initial_fields: Dict[str, Any]) -> Shipment:
    """
    New unsaved record from base fields. Party blocks and identifiers are not
    accepted here; signatures go through ``attach_signature``.
    """
    unknown = set(initial_fields) - set(BASE_FIELDS)
    if unknown:
        raise EditPermissionError(
            f"Cannot set {', '.join(sorted(unknown))} when creating a shipment"
        )

    missing = [f for f in REQUIRED_BASE_FIELDS if _is_blank(initial_fields.get(f))]
    if missing:
        raise ValidationError.missing(missing)

    fields = dict(initial_fields)
    if fields.get("remaining_quantity") is None:
        fields["remaining_quantity"] = fields["quantity"]
    return Shipment(**fields)


def attach_signature(
    record: Shipment,
    party: Party,
    signature: Optional[bytes],
    today: Optional[date] = None,
) -> Shipment:
    """Sign for ``party``; the signing date is always today"""
    party = Party(party)
    if not signature:
        raise ValidationError(f"{party.value.capitalize()} signature is empty", missing_fields=[f"{party.value}.signature"])

    _ensure_mutable(record)
    state = record.status
    if not can_edit(party, state, is_new=record.is_draft):
        raise EditPermissionError(
            f"cannot edit {party.value} fields while status is {_state_label(state)}"
        )

    block = record.party(party)
    signed = PartyBlock(name=block.name, signature=signature, date=today or date.today())
    return record.model_copy(update={party.value: signed})


def remove_signature(record: Shipment, party: Party) -> Shipment:
    """
    Clear ``party``'s signature and date, moving the status backward. Only
    the most recent signature may be removed, and never once approved.
    """
    party = Party(party)
    _ensure_mutable(record)

    block = record.party(party)
    if not block.is_signed:
        raise EditPermissionError(f"{party.value} has not signed this shipment")

    later = PARTY_ORDER[PARTY_ORDER.index(party) + 1:]
    for later_party in later:
        if record.party(later_party).is_signed:
            raise EditPermissionError(
                f"cannot remove {party.value} signature while {later_party.value} has signed; "
                f"remove the {later_party.value} signature first"
            )

    cleared = PartyBlock(name=block.name, signature=None, date=None)
    return record.model_copy(update={party.value: cleared})


def set_party_name(record: Shipment, party: Party, name: Optional[str]) -> Shipment:
    party = Party(party)
    block = record.party(party)
    return record.model_copy(update={
        party.value: PartyBlock(name=name, signature=block.signature, date=block.date)
    })


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def changed_fields(before: Shipment, after: Shipment) -> List[Tuple[str, FieldOwner]]:
    """``(field path, owner)`` for every field that differs"""
    changes = []
    for name in IMMUTABLE_FIELDS:
        if getattr(before, name) != getattr(after, name):
            changes.append((name, None))
    for name in BASE_FIELDS:
        if getattr(before, name) != getattr(after, name):
            changes.append((name, BASE))
    for party in PARTY_ORDER:
        old, new = before.party(party), after.party(party)
        for name in PARTY_FIELDS:
            if getattr(old, name) != getattr(new, name):
                changes.append((f"{party.value}.{name}", party))
    return changes


def blank_like(record: Shipment) -> Shipment:
    """Empty baseline a draft is compared against"""
    return Shipment(created_by=record.created_by, created_at=record.created_at)


def current_party(stored: Optional[Shipment]) -> Optional[Party]:
    """Party expected to act on the next submission"""
    if stored is None:
        return Party.RECEIVER
    return EDITABLE_PARTY[stored.status]


def _retracted_party(stored: Shipment, edited: Shipment) -> Optional[Party]:
    """Latest signer on the stored record whose signature the edit clears"""
    for party in reversed(PARTY_ORDER):
        if stored.party(party).is_signed:
            return party if not edited.party(party).is_signed else None
    return None


def check_permissions(stored: Optional[Shipment], edited: Shipment) -> None:
    """
    Reject any change the persisted state does not allow. ``stored`` is None
    for a first submission.
    """
    if stored is not None:
        _ensure_mutable(stored)
        baseline, state, is_new = stored, stored.status, False
        retracted = _retracted_party(stored, edited)
    else:
        baseline, state, is_new = blank_like(edited), ShipmentStatus.PENDING_SHIPMENT, True
        retracted = None

    denied = []
    for path, owner in changed_fields(baseline, edited):
        if owner is None:
            raise EditPermissionError(f"{path} is assigned once and cannot be changed")
        if retracted is not None and path in (f"{retracted.value}.signature", f"{retracted.value}.date"):
            continue
        if not can_edit(owner, state, is_new=is_new):
            denied.append((path, owner))

    if denied:
        owners = []
        for _, owner in denied:
            label = "shipment detail" if owner == BASE else Party(owner).value
            if label not in owners:
                owners.append(label)
        fields = ", ".join(path for path, _ in denied)
        raise EditPermissionError(
            f"cannot edit {' or '.join(owners)} fields while status is {_state_label(state)} ({fields})"
        )


def check_required(stored: Optional[Shipment], edited: Shipment) -> None:
    """Base fields plus the acting party's name; reports every missing field"""
    missing = [f for f in REQUIRED_BASE_FIELDS if _is_blank(getattr(edited, f))]
    party = current_party(stored)
    if stored is not None:
        # Retracting a signature hands the record back to that party
        party = _retracted_party(stored, edited) or party
    if party is not None and _is_blank(edited.party(party).name):
        missing.append(f"{party.value}.name")
    if missing:
        raise ValidationError.missing(missing)


def check_signatures(record: Shipment) -> None:
    """A party date exists exactly when its signature does"""
    for party in PARTY_ORDER:
        block = record.party(party)
        if block.is_signed != (block.date is not None):
            raise ValidationError(
                f"{party.value} signature and date must be set together",
                missing_fields=[f"{party.value}.date" if block.is_signed else f"{party.value}.signature"],
            )


def check_submission(stored: Optional[Shipment], edited: Shipment) -> None:
    check_permissions(stored, edited)
    check_required(stored, edited)
    check_signatures(edited)

