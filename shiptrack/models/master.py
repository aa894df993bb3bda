"""
Master Tables: AppUser, Role, RegistrationRequest
"""
from sqlalchemy import Column, String, Boolean, ForeignKey, Text, DateTime, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from shiptrack.core import Base
from .base import UUIDMixin, TimestampMixin


class RegistrationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Role(Base, UUIDMixin):
    """User Role (admin, manager, shipping, training)"""
    __tablename__ = "role"
    
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    
    # Relationships
    user_roles = relationship("UserRole", back_populates="role", cascade="all, delete-orphan")

class AppUser(Base, UUIDMixin, TimestampMixin):
    """Application User"""
    __tablename__ = "app_user"
    
    username = Column(String(200), unique=True, nullable=False)
    email = Column(String(200))
    full_name = Column(String(200))
    hashed_password = Column(String(255))
    is_active = Column(Boolean, default=True)
    is_test_user = Column(Boolean, default=False)
    
    # Relationships
    user_roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")

    @property
    def role_codes(self):
        return {ur.role.code for ur in self.user_roles if ur.role}

class UserRole(Base):
    """User-Role Many-to-Many"""
    __tablename__ = "user_role"
    
    user_id = Column(Uuid(as_uuid=True), ForeignKey("app_user.id"), primary_key=True)
    role_id = Column(Uuid(as_uuid=True), ForeignKey("role.id"), primary_key=True)
    
    # Relationships
    user = relationship("AppUser", back_populates="user_roles")
    role = relationship("Role", back_populates="user_roles")

class RegistrationRequest(Base, UUIDMixin):
    """Access request waiting for an administrator"""
    __tablename__ = "registration_request"
    
    name = Column(String(200), nullable=False)
    email = Column(String(200), nullable=False, index=True)
    status = Column(String(20), default=RegistrationStatus.PENDING.value, nullable=False, index=True)
    
    requested_at = Column(DateTime, default=datetime.utcnow)
    processed_at = Column(DateTime)
    processed_by = Column(String(200))
    
    # Set once approved
    user_id = Column(Uuid(as_uuid=True), ForeignKey("app_user.id"), nullable=True)
    admin_notified = Column(Boolean, default=False)
