"""
User, Registration and Manager Schemas
"""
from pydantic import BaseModel
from typing import Optional, List
from uuid import UUID
from datetime import datetime

class RegistrationCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None

class RegistrationResponse(BaseModel):
    id: UUID
    name: str
    email: str
    status: str
    requested_at: Optional[datetime]
    processed_at: Optional[datetime]
    processed_by: Optional[str]
    admin_notified: Optional[bool] = False

    class Config:
        from_attributes = True

class RegistrationApprove(BaseModel):
    roles: List[str] = ["shipping"]

class ManagerAdd(BaseModel):
    email: str

class LoginRequest(BaseModel):
    username: str
    password: str

class PasswordChange(BaseModel):
    current_password: str
    new_password: str
