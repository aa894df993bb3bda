"""
User Service - roles, registration requests, manager roster, dashboard modules
"""
from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional, Tuple
from uuid import UUID
from datetime import datetime
import logging

from shiptrack.core.config import settings
from shiptrack.core.context import (
    RequestContext, ROLE_ADMIN, ROLE_MANAGER, ROLE_SHIPPING, ROLE_TRAINING,
)
from shiptrack.core.exceptions import EditPermissionError, NotFoundError, StorageError, ValidationError
from shiptrack.core.security import get_password_hash, generate_temporary_password
from shiptrack.models import AppUser, Role, UserRole, RegistrationRequest, RegistrationStatus
from shiptrack.services.notify import notify_admin

logger = logging.getLogger(__name__)

DEFAULT_ROLES = [
    {"code": ROLE_ADMIN, "name": "Administrator", "description": "Approves registrations and manages managers"},
    {"code": ROLE_MANAGER, "name": "Manager", "description": "Reviews training records and maintains master data"},
    {"code": ROLE_SHIPPING, "name": "Shipping", "description": "Shipment records and manufacturing forms"},
    {"code": ROLE_TRAINING, "name": "Training", "description": "Self training against SOPs"},
]

# Dashboard modules and the roles that open them
DASHBOARD_MODULES = [
    {"key": "shipments", "name": "Shipment Records", "roles": {ROLE_SHIPPING, ROLE_MANAGER, ROLE_ADMIN}},
    {"key": "manufacturing", "name": "Manufacturing", "roles": {ROLE_SHIPPING, ROLE_MANAGER, ROLE_ADMIN}},
    {"key": "items", "name": "Item Master", "roles": {ROLE_SHIPPING, ROLE_MANAGER, ROLE_ADMIN}},
    {"key": "training", "name": "Self Training", "roles": {ROLE_TRAINING, ROLE_SHIPPING, ROLE_MANAGER, ROLE_ADMIN}},
    {"key": "training-approvals", "name": "Approve Training", "roles": {ROLE_MANAGER, ROLE_ADMIN}},
    {"key": "admin", "name": "Admin Verification", "roles": {ROLE_ADMIN}},
]


def build_context(user: AppUser) -> RequestContext:
    """RequestContext for an authenticated user"""
    roles = set(user.role_codes)
    if user.email and user.email.lower() in {e.lower() for e in settings.ADMIN_EMAILS}:
        roles.add(ROLE_ADMIN)
    return RequestContext(
        user_id=user.id,
        email=user.email,
        display_name=user.full_name,
        roles=frozenset(roles),
        is_test_environment=bool(user.is_test_user),
    )


class UserService:
    """User and registration business logic"""

    @staticmethod
    def seed_roles(db: Session) -> None:
        """Create the default roles when missing"""
        existing = {code for (code,) in db.query(Role.code).all()}
        for role in DEFAULT_ROLES:
            if role["code"] not in existing:
                db.add(Role(**role))
        db.commit()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[AppUser]:
        return db.query(AppUser).filter(func.lower(AppUser.email) == email.lower()).first()

    @staticmethod
    def assign_role(db: Session, user: AppUser, code: str) -> None:
        role = db.query(Role).filter(Role.code == code).first()
        if not role:
            raise NotFoundError(f"Role {code} not found")
        if code not in user.role_codes:
            user.user_roles.append(UserRole(role=role))

    @staticmethod
    def dashboard_modules(ctx: RequestContext) -> List[dict]:
        return [
            {"key": m["key"], "name": m["name"]}
            for m in DASHBOARD_MODULES
            if m["roles"] & ctx.roles or (ctx.is_manager and ROLE_MANAGER in m["roles"])
        ]

    # ============== Registration ==============

    @staticmethod
    def request_access(db: Session, name: Optional[str], email: Optional[str]) -> RegistrationRequest:
        """Store a registration request and ask the relay to tell the admin"""
        name = (name or "").strip()
        email = (email or "").strip().lower()
        missing = [field for field, value in (("name", name), ("email", email)) if not value]
        if missing:
            raise ValidationError.missing(missing)
        if "@" not in email:
            raise ValidationError("Please enter a valid email address", missing_fields=["email"])

        if UserService.get_user_by_email(db, email):
            raise ValidationError("An account with this email already exists", missing_fields=["email"])

        pending = db.query(RegistrationRequest).filter(
            RegistrationRequest.email == email,
            RegistrationRequest.status == RegistrationStatus.PENDING.value
        ).first()
        if pending:
            raise ValidationError("A request for this email is already waiting for approval", missing_fields=["email"])

        request = RegistrationRequest(name=name, email=email)
        db.add(request)
        UserService._commit(db, "save registration request")

        request.admin_notified = notify_admin(name, email) is not None
        UserService._commit(db, "save registration request")
        db.refresh(request)
        logger.info(f"Registration requested for {email}")
        return request

    @staticmethod
    def get_requests(db: Session, ctx: RequestContext, status: Optional[str] = None) -> List[RegistrationRequest]:
        UserService._require_admin(ctx)
        query = db.query(RegistrationRequest)
        if status and status != "all":
            query = query.filter(RegistrationRequest.status == status)
        return query.order_by(RegistrationRequest.requested_at.desc()).all()

    @staticmethod
    def approve_request(
        db: Session,
        ctx: RequestContext,
        request_id: UUID,
        roles: List[str]
    ) -> Tuple[AppUser, str]:
        """
        Create the account for a pending request. Returns the user and the
        temporary password, which is shown once to the administrator.
        """
        UserService._require_admin(ctx)
        request = UserService._get_pending(db, request_id)

        if UserService.get_user_by_email(db, request.email):
            raise ValidationError("An account with this email already exists", missing_fields=["email"])

        temporary_password = generate_temporary_password()
        user = AppUser(
            username=request.email,
            email=request.email,
            full_name=request.name,
            hashed_password=get_password_hash(temporary_password),
            is_active=True,
        )
        db.add(user)
        for code in roles or [ROLE_SHIPPING]:
            UserService.assign_role(db, user, code)
        db.flush()

        request.status = RegistrationStatus.APPROVED.value
        request.processed_at = datetime.utcnow()
        request.processed_by = ctx.actor_name
        request.user_id = user.id

        UserService._commit(db, "approve registration")
        db.refresh(user)
        logger.info(f"Registration for {request.email} approved by {ctx.actor_name}")
        return user, temporary_password

    @staticmethod
    def reject_request(db: Session, ctx: RequestContext, request_id: UUID) -> RegistrationRequest:
        UserService._require_admin(ctx)
        request = UserService._get_pending(db, request_id)

        request.status = RegistrationStatus.REJECTED.value
        request.processed_at = datetime.utcnow()
        request.processed_by = ctx.actor_name

        UserService._commit(db, "reject registration")
        db.refresh(request)
        logger.info(f"Registration for {request.email} rejected by {ctx.actor_name}")
        return request

    # ============== Managers ==============

    @staticmethod
    def get_managers(db: Session, ctx: RequestContext) -> List[AppUser]:
        UserService._require_admin(ctx)
        return db.query(AppUser)\
            .join(UserRole, UserRole.user_id == AppUser.id)\
            .join(Role, Role.id == UserRole.role_id)\
            .filter(Role.code == ROLE_MANAGER)\
            .order_by(AppUser.email)\
            .all()

    @staticmethod
    def add_manager(db: Session, ctx: RequestContext, email: str) -> AppUser:
        UserService._require_admin(ctx)
        user = UserService.get_user_by_email(db, (email or "").strip())
        if not user:
            raise NotFoundError(f"No account found for {email}")
        UserService.assign_role(db, user, ROLE_MANAGER)
        UserService._commit(db, "add manager")
        logger.info(f"{user.email} made manager by {ctx.actor_name}")
        return user

    @staticmethod
    def remove_manager(db: Session, ctx: RequestContext, email: str) -> AppUser:
        UserService._require_admin(ctx)
        user = UserService.get_user_by_email(db, (email or "").strip())
        if not user or ROLE_MANAGER not in user.role_codes:
            raise NotFoundError(f"{email} is not a manager")
        user.user_roles = [ur for ur in user.user_roles if ur.role.code != ROLE_MANAGER]
        UserService._commit(db, "remove manager")
        logger.info(f"{user.email} removed from managers by {ctx.actor_name}")
        return user

    # ============== Helpers ==============

    @staticmethod
    def _get_pending(db: Session, request_id: UUID) -> RegistrationRequest:
        request = db.query(RegistrationRequest).filter(RegistrationRequest.id == request_id).first()
        if not request:
            raise NotFoundError(f"Registration request {request_id} not found")
        if request.status != RegistrationStatus.PENDING.value:
            raise EditPermissionError(f"Registration request was already {request.status}")
        return request

    @staticmethod
    def _commit(db: Session, action: str) -> None:
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise StorageError(f"Failed to {action}: {e.__class__.__name__}") from e

    @staticmethod
    def _require_admin(ctx: RequestContext) -> None:
        if not ctx.is_admin:
            raise EditPermissionError("Only administrators can manage users")
