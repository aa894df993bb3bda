import httpx
import pytest

from shiptrack.core.context import ROLE_ADMIN, ROLE_MANAGER, ROLE_SHIPPING, ROLE_TRAINING
from shiptrack.core.exceptions import EditPermissionError, NotFoundError, ValidationError
from shiptrack.core.security import verify_password
from shiptrack.models import AppUser, RegistrationRequest
from shiptrack.services import notify
from shiptrack.services.user_service import UserService, build_context
from tests.conftest import create_user, make_context


def test_request_access_notifies_admin(db, no_relay):
    request = UserService.request_access(db, " Rita ", "Rita@Example.com")

    assert request.status == "pending"
    assert request.email == "rita@example.com"
    assert request.admin_notified is True
    assert no_relay == [("Rita", "rita@example.com")]


def test_request_access_validation(db):
    with pytest.raises(ValidationError) as exc:
        UserService.request_access(db, "", None)
    assert exc.value.missing_fields == ["name", "email"]

    UserService.request_access(db, "Rita", "rita@example.com")
    with pytest.raises(ValidationError):
        UserService.request_access(db, "Rita", "rita@example.com")


def test_relay_failure_does_not_block_registration(db, monkeypatch):
    monkeypatch.setattr("shiptrack.services.user_service.notify_admin", lambda name, email: None)
    request = UserService.request_access(db, "Rita", "rita@example.com")
    assert request.admin_notified is False
    assert db.query(RegistrationRequest).count() == 1


def test_approve_creates_account(db, admin_ctx):
    request = UserService.request_access(db, "Rita", "rita@example.com")

    user, password = UserService.approve_request(db, admin_ctx, request.id, [ROLE_SHIPPING, ROLE_TRAINING])

    assert user.username == "rita@example.com"
    assert user.role_codes == {ROLE_SHIPPING, ROLE_TRAINING}
    assert verify_password(password, user.hashed_password)
    db.refresh(request)
    assert request.status == "approved"
    assert request.user_id == user.id
    assert request.processed_by == "Admin"

    with pytest.raises(EditPermissionError):
        UserService.reject_request(db, admin_ctx, request.id)


def test_only_admins_process_requests(db, manager_ctx):
    request = UserService.request_access(db, "Rita", "rita@example.com")
    with pytest.raises(EditPermissionError):
        UserService.approve_request(db, manager_ctx, request.id, [ROLE_SHIPPING])
    with pytest.raises(EditPermissionError):
        UserService.get_requests(db, manager_ctx)


def test_reject(db, admin_ctx):
    request = UserService.request_access(db, "Rita", "rita@example.com")
    rejected = UserService.reject_request(db, admin_ctx, request.id)
    assert rejected.status == "rejected"
    assert UserService.get_requests(db, admin_ctx, "pending") == []
    assert db.query(AppUser).count() == 0


def test_manager_roster(db, admin_ctx):
    create_user(db, "sam@example.com", [ROLE_SHIPPING])

    with pytest.raises(NotFoundError):
        UserService.add_manager(db, admin_ctx, "nobody@example.com")

    UserService.add_manager(db, admin_ctx, "Sam@example.com")
    assert [u.email for u in UserService.get_managers(db, admin_ctx)] == ["sam@example.com"]

    user = UserService.remove_manager(db, admin_ctx, "sam@example.com")
    assert user.role_codes == {ROLE_SHIPPING}
    assert UserService.get_managers(db, admin_ctx) == []


def test_admin_emails_grant_admin(db, monkeypatch):
    user = create_user(db, "boss@example.com", [ROLE_SHIPPING])
    monkeypatch.setattr("shiptrack.services.user_service.settings.ADMIN_EMAILS", ["BOSS@example.com"])
    assert build_context(user).is_admin


def test_dashboard_modules():
    shipping = [m["key"] for m in UserService.dashboard_modules(make_context(ROLE_SHIPPING))]
    training = [m["key"] for m in UserService.dashboard_modules(make_context(ROLE_TRAINING))]
    admin = [m["key"] for m in UserService.dashboard_modules(make_context(ROLE_ADMIN))]

    assert "shipments" in shipping and "training-approvals" not in shipping
    assert training == ["training"]
    assert "admin" in admin and "training-approvals" in admin
    assert "training-approvals" in [m["key"] for m in UserService.dashboard_modules(make_context(ROLE_MANAGER))]


class TestNotifyClient:
    def test_posts_to_relay(self, monkeypatch):
        sent = {}

        def fake_post(url, json, timeout):
            sent.update(url=url, json=json)
            return httpx.Response(200, json={"success": True, "messageId": "<abc@relay>"}, request=httpx.Request("POST", url))

        monkeypatch.setattr(notify.settings, "RELAY_URL", "http://relay:5000/")
        monkeypatch.setattr(notify.httpx, "post", fake_post)

        assert notify.notify_admin("Rita", "rita@example.com") == "<abc@relay>"
        assert sent == {"url": "http://relay:5000/api/notify-admin", "json": {"name": "Rita", "email": "rita@example.com"}}

    def test_failure_returns_none(self, monkeypatch):
        def fake_post(url, json, timeout):
            return httpx.Response(500, json={"error": "boom"}, request=httpx.Request("POST", url))

        monkeypatch.setattr(notify.settings, "RELAY_URL", "http://relay:5000")
        monkeypatch.setattr(notify.httpx, "post", fake_post)
        assert notify.notify_admin("Rita", "rita@example.com") is None

    def test_unconfigured(self, monkeypatch):
        monkeypatch.setattr(notify.settings, "RELAY_URL", None)
        assert notify.notify_admin("Rita", "rita@example.com") is None
