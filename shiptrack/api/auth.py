"""
Authentication API - Login, JWT Token, Password Management
"""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional, List
from datetime import timedelta
import logging

from shiptrack.core import get_db, session_factory, settings, RequestContext
from shiptrack.core.security import (
    verify_password, get_password_hash, create_access_token, decode_access_token,
)
from shiptrack.models import AppUser
from shiptrack.schemas.user import PasswordChange
from shiptrack.services.user_service import UserService, build_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# OAuth2 scheme
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# ============== Schemas ==============

class Token(BaseModel):
    access_token: str
    token_type: str
    user: dict


class UserInfo(BaseModel):
    id: str
    username: str
    email: Optional[str]
    full_name: Optional[str]
    is_active: bool
    is_test_user: bool
    roles: List[str]
    modules: List[dict]


# ============== Helper Functions ==============

def authenticate_user(db: Session, username: str, password: str) -> Optional[AppUser]:
    """Authenticate user by username (email) and password"""
    user = db.query(AppUser).filter(AppUser.username == username.strip().lower()).first()
    if not user or not user.hashed_password:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def user_payload(user: AppUser) -> dict:
    ctx = build_context(user)
    return {
        "id": str(user.id),
        "username": user.username,
        "email": user.email,
        "full_name": user.full_name,
        "is_active": bool(user.is_active),
        "is_test_user": bool(user.is_test_user),
        "roles": sorted(ctx.roles),
        "modules": UserService.dashboard_modules(ctx),
    }


# ============== Dependencies ==============

async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> Optional[AppUser]:
    """Get current user from JWT token"""
    if not token:
        return None

    payload = decode_access_token(token)
    if payload is None or payload.get("sub") is None:
        return None

    return db.query(AppUser).filter(AppUser.username == payload["sub"]).first()


async def get_current_active_user(
    current_user: Optional[AppUser] = Depends(get_current_user)
) -> AppUser:
    """Require authenticated and active user"""
    if not current_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive"
        )
    return current_user


async def get_request_context(
    current_user: AppUser = Depends(get_current_active_user)
) -> RequestContext:
    return build_context(current_user)


def get_context_db(ctx: RequestContext = Depends(get_request_context)):
    """Session on the live database, or the test database for test users"""
    db = session_factory(ctx.is_test_environment)()
    try:
        yield db
    finally:
        db.close()


# ============== API Endpoints ==============

@router.post("/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """
    Login with email and password, returns JWT token
    """
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        logger.warning(f"Failed login for {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This account has been deactivated"
        )

    access_token = create_access_token(
        data={"sub": user.username},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": user_payload(user),
    }


@router.get("/me", response_model=UserInfo)
async def get_me(current_user: AppUser = Depends(get_current_active_user)):
    """Get current user info"""
    return user_payload(current_user)


@router.post("/password")
async def change_password(
    data: PasswordChange,
    current_user: AppUser = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Change the current user's password"""
    if not current_user.hashed_password or not verify_password(data.current_password, current_user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    if len(data.new_password) < 8:
        raise HTTPException(status_code=400, detail="New password must be at least 8 characters")

    user = db.query(AppUser).filter(AppUser.id == current_user.id).first()
    user.hashed_password = get_password_hash(data.new_password)
    db.commit()

    return {"success": True, "message": "Password changed"}
