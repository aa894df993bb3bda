"""
Registration, Manager and Dashboard API
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from shiptrack.core import get_db, RequestContext
from shiptrack.models import AppUser
from shiptrack.schemas.user import (
    RegistrationCreate, RegistrationResponse, RegistrationApprove, ManagerAdd,
)
from shiptrack.services.user_service import UserService
from .auth import get_request_context

router = APIRouter(prefix="/registrations", tags=["registrations"])
managers_router = APIRouter(prefix="/managers", tags=["managers"])
dashboard_router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def user_to_dict(user: AppUser) -> dict:
    return {
        "id": str(user.id),
        "username": user.username,
        "email": user.email,
        "full_name": user.full_name,
        "is_active": user.is_active,
        "roles": sorted(user.role_codes),
    }


# ============== Registrations ==============

@router.post("", status_code=201)
def request_access(data: RegistrationCreate, db: Session = Depends(get_db)):
    """Public: ask for an account"""
    request = UserService.request_access(db, data.name, data.email)
    return RegistrationResponse.model_validate(request).model_dump(mode="json")


@router.get("")
def list_registrations(
    status: Optional[str] = Query("pending"),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    requests = UserService.get_requests(db, ctx, status)
    return [RegistrationResponse.model_validate(r).model_dump(mode="json") for r in requests]


@router.post("/{request_id}/approve")
def approve_registration(
    request_id: UUID,
    data: Optional[RegistrationApprove] = None,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    roles = data.roles if data else RegistrationApprove().roles
    user, temporary_password = UserService.approve_request(db, ctx, request_id, roles)
    return {
        "user": user_to_dict(user),
        "temporary_password": temporary_password,
    }


@router.post("/{request_id}/reject")
def reject_registration(
    request_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    request = UserService.reject_request(db, ctx, request_id)
    return RegistrationResponse.model_validate(request).model_dump(mode="json")


# ============== Managers ==============

@managers_router.get("")
def list_managers(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    return [user_to_dict(u) for u in UserService.get_managers(db, ctx)]


@managers_router.post("", status_code=201)
def add_manager(
    data: ManagerAdd,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    return user_to_dict(UserService.add_manager(db, ctx, data.email))


@managers_router.delete("/{email}")
def remove_manager(
    email: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
):
    return user_to_dict(UserService.remove_manager(db, ctx, email))


# ============== Dashboard ==============

@dashboard_router.get("")
def dashboard(ctx: RequestContext = Depends(get_request_context)):
    """Modules the caller may open"""
    return {
        "user": {"email": ctx.email, "name": ctx.actor_name, "role": ctx.role},
        "is_test_environment": ctx.is_test_environment,
        "modules": UserService.dashboard_modules(ctx),
    }
