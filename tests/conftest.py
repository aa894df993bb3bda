import base64
import io
from datetime import date
from uuid import uuid4

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from pypdf import PdfWriter
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shiptrack.api.auth import get_context_db, get_request_context
from shiptrack.core import Base, get_db, RequestContext
from shiptrack.core.context import ROLE_ADMIN, ROLE_MANAGER, ROLE_SHIPPING, ROLE_TRAINING
from shiptrack.core.security import create_access_token, get_password_hash
from shiptrack.models import AppUser
from shiptrack.services import workflow
from shiptrack.services.user_service import UserService

SIGNATURE = b"\x89PNG\r\n\x1a\nsignature-pixels"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    UserService.seed_roles(session)
    yield session
    session.close()


@pytest.fixture(autouse=True)
def no_relay(monkeypatch):
    """Registration never reaches a real relay in tests"""
    calls = []

    def fake_notify(name, email):
        calls.append((name, email))
        return "<test@relay>"

    monkeypatch.setattr("shiptrack.services.user_service.notify_admin", fake_notify)
    return calls


def make_context(*roles, is_test_environment=False, name="Tester"):
    return RequestContext(
        user_id=uuid4(),
        email=f"{name.lower()}@example.com",
        display_name=name,
        roles=frozenset(roles),
        is_test_environment=is_test_environment,
    )


@pytest.fixture
def shipping_ctx():
    return make_context(ROLE_SHIPPING, name="Receiver")


@pytest.fixture
def trainee_ctx():
    return make_context(ROLE_TRAINING, name="Trainee")


@pytest.fixture
def manager_ctx():
    return make_context(ROLE_MANAGER, name="Manager")


@pytest.fixture
def admin_ctx():
    return make_context(ROLE_ADMIN, name="Admin")


def make_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def pdf_bytes():
    return make_pdf()


def draft(**overrides):
    fields = {
        "shipment_date": date(2024, 3, 15),
        "item_number": "AB12",
        "item_name": "Vitamin D3 Powder",
        "lot_number": "XY99",
        "quantity": 10,
        "unit": "KG",
    }
    fields.update(overrides)
    return workflow.create_draft(fields)


def b64(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


# ============== API ==============

@pytest.fixture
def client(engine, db):
    from shiptrack.main import app

    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    def override_context_db(ctx: RequestContext = Depends(get_request_context)):
        yield from override_db()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_context_db] = override_context_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def create_user(db, email, roles, password="password123", full_name=None) -> AppUser:
    user = AppUser(
        username=email,
        email=email,
        full_name=full_name or email.split("@")[0].title(),
        hashed_password=get_password_hash(password),
        is_active=True,
    )
    db.add(user)
    for code in roles:
        UserService.assign_role(db, user, code)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: AppUser) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.username})}"}


@pytest.fixture
def users(db):
    return {
        "receiver": create_user(db, "receiver@example.com", [ROLE_SHIPPING]),
        "inspector": create_user(db, "inspector@example.com", [ROLE_SHIPPING]),
        "manager": create_user(db, "manager@example.com", [ROLE_MANAGER]),
        "admin": create_user(db, "admin@example.com", [ROLE_ADMIN]),
        "trainee": create_user(db, "trainee@example.com", [ROLE_TRAINING]),
    }
