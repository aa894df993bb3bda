import smtplib

import pytest
from fastapi.testclient import TestClient

from shiptrack.relay import app as relay
from shiptrack.relay import RelayConfigError, RelaySettings, create_app


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port = host, port

    def starttls(self):
        pass

    def login(self, user, password):
        if password == "wrong":
            raise smtplib.SMTPAuthenticationError(535, b"bad credentials")

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)

    def quit(self):
        pass


@pytest.fixture
def config():
    return RelaySettings(
        _env_file=None,
        EMAIL_USER="relay@example.com",
        EMAIL_PASS="secret",
        ADMIN_EMAIL="admin@example.com",
    )


@pytest.fixture
def relay_client(config, monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(relay.smtplib, "SMTP", FakeSMTP)
    return TestClient(create_app(config))


def test_missing_credentials():
    with pytest.raises(RelayConfigError) as exc:
        create_app(RelaySettings(_env_file=None, EMAIL_USER="relay@example.com", EMAIL_PASS="", ADMIN_EMAIL=None))
    assert "EMAIL_PASS" in str(exc.value) and "ADMIN_EMAIL" in str(exc.value)


def test_main_exits_without_credentials(monkeypatch):
    for name in ("EMAIL_USER", "EMAIL_PASS", "ADMIN_EMAIL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(relay, "RelaySettings", lambda: RelaySettings(_env_file=None))
    with pytest.raises(SystemExit) as exc:
        relay.main()
    assert exc.value.code == 1


def test_health(relay_client):
    response = relay_client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "timestamp" in response.json()


def test_notify_admin(relay_client):
    response = relay_client.post("/api/notify-admin", json={"name": "Rita", "email": "rita@example.com"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["messageId"]
    msg = FakeSMTP.sent[0]
    assert msg["To"] == "admin@example.com"
    assert msg["Subject"] == "New User Registration Request"
    assert "rita@example.com" in msg.get_body(("plain",)).get_content()


def test_notify_admin_missing_fields(relay_client):
    response = relay_client.post("/api/notify-admin", json={"name": "Rita"})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields"
    assert FakeSMTP.sent == []


def test_notify_admin_send_failure(config, monkeypatch):
    monkeypatch.setattr(relay.smtplib, "SMTP", FakeSMTP)
    client = TestClient(create_app(config.model_copy(update={"EMAIL_PASS": "wrong"})))

    response = client.post("/api/notify-admin", json={"name": "Rita", "email": "rita@example.com"})
    assert response.status_code == 500
    assert "error" in response.json()


def test_notify_admin_escapes_html(relay_client):
    response = relay_client.post(
        "/api/notify-admin",
        json={"name": "<script>alert(1)</script>", "email": "rita@example.com"},
    )

    assert response.status_code == 200
    html_body = FakeSMTP.sent[0].get_body(("html",)).get_content()
    assert "<script>" not in html_body
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html_body
