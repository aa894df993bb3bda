"""
Mail Relay - tells the administrator about new registration requests

Runs as its own process so SMTP credentials never reach the main app.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic_settings import BaseSettings
from email.message import EmailMessage
from email.utils import make_msgid
from datetime import datetime
from typing import Optional
import html
import logging
import smtplib
import sys

import uvicorn

logger = logging.getLogger(__name__)

REQUIRED_SETTINGS = ("EMAIL_USER", "EMAIL_PASS", "ADMIN_EMAIL")


class RelaySettings(BaseSettings):
    EMAIL_USER: Optional[str] = None
    EMAIL_PASS: Optional[str] = None
    ADMIN_EMAIL: Optional[str] = None
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    RELAY_PORT: int = 5000
    PORTAL_URL: str = "http://localhost:3000"

    class Config:
        env_file = ".env"
        extra = "ignore"


class RelayConfigError(RuntimeError):
    """Mail credentials missing from the environment"""


def send_admin_notification(config: RelaySettings, name: str, email: str) -> str:
    """Send the registration mail; returns its Message-ID"""
    msg = EmailMessage()
    msg["Subject"] = "New User Registration Request"
    msg["From"] = config.EMAIL_USER
    msg["To"] = config.ADMIN_EMAIL
    msg["Message-ID"] = make_msgid()
    requested = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    msg.set_content(
        f"New User Registration Request\n\n"
        f"Name: {name}\nEmail: {email}\nTime: {requested}\n\n"
        f"Please review this request in your admin dashboard: {config.PORTAL_URL}\n"
    )
    msg.add_alternative(
        f"<h2>New User Registration Request</h2>"
        f"<p><strong>Name:</strong> {html.escape(name)}</p>"
        f"<p><strong>Email:</strong> {html.escape(email)}</p>"
        f"<p><strong>Time:</strong> {requested}</p>"
        f"<p>Please review this request in your admin dashboard.</p>"
        f'<a href="{config.PORTAL_URL}">Review Request</a>',
        subtype="html",
    )

    if config.SMTP_PORT == 465:
        server = smtplib.SMTP_SSL(config.SMTP_HOST, config.SMTP_PORT, timeout=10)
    else:
        server = smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=10)
        server.starttls()
    try:
        server.login(config.EMAIL_USER, config.EMAIL_PASS)
        server.send_message(msg)
    finally:
        server.quit()
    return msg["Message-ID"]


def create_app(config: Optional[RelaySettings] = None) -> FastAPI:
    config = config or RelaySettings()
    missing = [name for name in REQUIRED_SETTINGS if not getattr(config, name)]
    if missing:
        raise RelayConfigError(f"Missing required environment variables: {', '.join(missing)}")

    app = FastAPI(title="ShipTrack Mail Relay")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "timestamp": datetime.now().isoformat()}

    @app.post("/api/notify-admin")
    async def notify_admin(request: Request):
        try:
            data = await request.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        name, email = data.get("name"), data.get("email")
        logger.info(f"Received notification request for {email}")

        if not name or not email:
            return JSONResponse(
                status_code=400,
                content={
                    "error": "Missing required fields",
                    "required": ["name", "email"],
                    "received": {"name": name, "email": email},
                },
            )

        try:
            message_id = send_admin_notification(config, name, email)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send admin notification for {email}: {e}")
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to send notification", "message": str(e)},
            )

        logger.info(f"Admin notification sent for {email}: {message_id}")
        return {"success": True, "messageId": message_id}

    return app


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = RelaySettings()
    try:
        app = create_app(config)
    except RelayConfigError as e:
        logger.error(str(e))
        sys.exit(1)
    uvicorn.run(app, host="0.0.0.0", port=config.RELAY_PORT)


if __name__ == "__main__":
    main()
