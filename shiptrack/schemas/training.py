"""
Training Schemas
"""
from pydantic import BaseModel
from typing import Optional
from uuid import UUID

class SopCreate(BaseModel):
    sop_number: str
    title: str
    revision: Optional[str] = None

class SopUpdate(BaseModel):
    title: Optional[str] = None
    revision: Optional[str] = None
    is_active: Optional[bool] = None

class SopResponse(BaseModel):
    id: UUID
    sop_number: str
    title: str
    revision: Optional[str]
    is_active: bool

    class Config:
        from_attributes = True

class SelfTrainingCreate(BaseModel):
    sop_id: Optional[UUID] = None
    sop_number: Optional[str] = None
    sop_title: Optional[str] = None
    revision: Optional[str] = None
    trainee_name: Optional[str] = None
    trainee_signature: Optional[str] = None  # base64 image
    attachment_name: Optional[str] = None
    attachment: Optional[str] = None  # base64 PDF

class TrainingDecision(BaseModel):
    notes: Optional[str] = None
    signature: Optional[str] = None  # base64 image
    attachment_name: Optional[str] = None
    attachment: Optional[str] = None  # base64 PDF, approvals only
