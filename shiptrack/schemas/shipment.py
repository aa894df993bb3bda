"""
Shipment Schemas

``Shipment`` is the in-memory record the workflow engine operates on. It is
frozen: every workflow operation returns a new copy, so a failed submission
never disturbs the caller's edits. ``shipment_code`` and ``status`` are
computed from the other fields and cannot be set.
"""
from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import Optional, List
from datetime import date, datetime
import datetime as dt
from decimal import Decimal
from uuid import UUID

from shiptrack.models.shipment import ShipmentStatus, Party


class PartyBlock(BaseModel):
    """Name, signature and signing date of one party"""
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    signature: Optional[bytes] = None
    date: Optional[dt.date] = None

    @property
    def is_signed(self) -> bool:
        return bool(self.signature)


class Shipment(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Storage key, None for a draft
    doc_id: Optional[UUID] = None
    # Human-readable sequential id, assigned on first save
    id: Optional[str] = None
    sequence_number: Optional[int] = None

    shipment_date: Optional[date] = None
    item_number: Optional[str] = None
    item_name: Optional[str] = None
    lot_number: Optional[str] = None
    quantity: Optional[Decimal] = None
    remaining_quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    manufacturer: Optional[str] = None
    vendor: Optional[str] = None
    transportation: Optional[str] = None
    bill_number: Optional[str] = None
    expiry_date: Optional[date] = None

    damaged: bool = False
    damage_notes: Optional[str] = None

    attachment_name: Optional[str] = None
    attachment: Optional[bytes] = None

    receiver: PartyBlock = Field(default_factory=PartyBlock)
    inspector: PartyBlock = Field(default_factory=PartyBlock)
    approver: PartyBlock = Field(default_factory=PartyBlock)

    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_test_data: bool = False

    @computed_field
    @property
    def shipment_code(self) -> str:
        from shiptrack.services.workflow import compute_shipment_code
        return compute_shipment_code(self.item_number, self.lot_number, self.shipment_date)

    @computed_field
    @property
    def status(self) -> ShipmentStatus:
        from shiptrack.services.workflow import derive_status
        return derive_status(self)

    @property
    def is_draft(self) -> bool:
        return self.doc_id is None

    def party(self, party: Party) -> PartyBlock:
        return getattr(self, Party(party).value)


# ============== API payloads ==============

class PartyPayload(BaseModel):
    name: Optional[str] = None
    # Base64 (or data-URL) encoded signature image
    signature: Optional[str] = None


class ShipmentPayload(BaseModel):
    """Form body for creating or editing a shipment"""
    shipment_date: Optional[date] = None
    item_number: Optional[str] = None
    item_name: Optional[str] = None
    lot_number: Optional[str] = None
    quantity: Optional[Decimal] = None
    remaining_quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    manufacturer: Optional[str] = None
    vendor: Optional[str] = None
    transportation: Optional[str] = None
    bill_number: Optional[str] = None
    expiry_date: Optional[date] = None
    damaged: Optional[bool] = None
    damage_notes: Optional[str] = None
    attachment_name: Optional[str] = None
    attachment: Optional[str] = None  # base64 PDF

    receiver: Optional[PartyPayload] = None
    inspector: Optional[PartyPayload] = None
    approver: Optional[PartyPayload] = None


class SignaturePayload(BaseModel):
    signature: str
    name: Optional[str] = None


class ShipmentCodeRequest(BaseModel):
    item_number: Optional[str] = None
    lot_number: Optional[str] = None
    shipment_date: Optional[date] = None


class ShipmentListResponse(BaseModel):
    shipments: List[dict]
    total: int
    page: int
    per_page: int
