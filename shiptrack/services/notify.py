"""
Client for the mail relay process
"""
from typing import Optional
import logging

import httpx

from shiptrack.core.config import settings

logger = logging.getLogger(__name__)


def notify_admin(name: str, email: str) -> Optional[str]:
    """
    Ask the relay to mail the administrator about a new registration.
    Returns the relay's message id, or None when the relay is not
    configured or the call failed. Registration never fails on this.
    """
    if not settings.RELAY_URL:
        logger.info("RELAY_URL not set, skipping admin notification")
        return None

    url = f"{settings.RELAY_URL.rstrip('/')}/api/notify-admin"
    try:
        response = httpx.post(
            url,
            json={"name": name, "email": email},
            timeout=settings.RELAY_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Admin notification for {email} failed: {e}")
        return None

    try:
        message_id = response.json().get("messageId")
    except ValueError:
        message_id = None
    logger.info(f"Admin notified about registration of {email} ({message_id})")
    return message_id
