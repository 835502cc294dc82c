"""Transactional email through the Resend HTTP API."""
import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.core.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
RESEND_TIMEOUT_SECONDS = 15.0
ADMIN_RECIPIENT_ALIAS = "ADMIN_EMAIL"


class EmailService:
    def __init__(self, api_key: Optional[str] = None, sender: Optional[str] = None, http_client: Optional[httpx.Client] = None):
        self.api_key = api_key or settings.RESEND_API_KEY
        self.sender = sender or settings.ADMIN_EMAIL
        if not self.api_key or not self.sender:
            raise UpstreamServiceError("RESEND_API_KEY or ADMIN_EMAIL environment variables are not set.")
        self.http_client = http_client

    def resolve_recipient(self, to: str) -> str:
        """``ADMIN_EMAIL`` is an alias for the configured admin address."""
        return self.sender if to == ADMIN_RECIPIENT_ALIAS else to

    def send(self, to: str, subject: str, html: str) -> Dict[str, Any]:
        recipient = self.resolve_recipient(to)
        payload = {
            "from": f"Admin Notifications <{self.sender}>",
            "to": [recipient],
            "subject": subject,
            "html": html,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        logger.info("Sending email to %s: %s", recipient, subject)

        client = self.http_client or httpx.Client(timeout=RESEND_TIMEOUT_SECONDS)
        try:
            response = client.post(RESEND_API_URL, headers=headers, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Resend rejected email: %s", e.response.text)
            raise UpstreamServiceError(f"Failed to send email: {e.response.text or e}") from e
        except httpx.HTTPError as e:
            raise UpstreamServiceError(f"Failed to send email: {e}") from e
        finally:
            if self.http_client is None:
                client.close()

        if not response.text:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}


def get_email_service() -> EmailService:
    """FastAPI dependency; overridden in tests."""
    return EmailService()
