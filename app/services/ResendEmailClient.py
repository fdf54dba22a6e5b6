"""Transactional email delivery through the Resend HTTP API."""

import logging
from typing import Optional, Protocol

import httpx

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the delivery API rejects or fails a send."""


class EmailTransport(Protocol):
    """Anything that can put one rendered email on the wire."""

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        reply_to: Optional[str] = None,
    ) -> dict:
        ...


class ResendEmailClient:
    """Client for the Resend email API."""

    BASE_URL = "https://api.resend.com"

    def __init__(self, api_key: str, from_email: str, timeout: float = 30.0):
        self.api_key = api_key
        self.from_email = from_email
        self.timeout = timeout

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        reply_to: Optional[str] = None,
    ) -> dict:
        """
        Send one HTML email.

        Args:
            to: Recipient email address
            subject: Email subject
            html: Rendered HTML body
            reply_to: Optional reply-to address

        Returns:
            dict with the provider message id and the addressing used

        Raises:
            EmailDeliveryError: when the key is missing or the API answers non-2xx
        """
        if not self.api_key:
            raise EmailDeliveryError("RESEND_API_KEY is not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        payload = {
            "from": self.from_email,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if reply_to:
            payload["reply_to"] = reply_to

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(f"{self.BASE_URL}/emails", json=payload, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error(f"❌ Resend API error: {e.response.status_code} - {e.response.text}")
                raise EmailDeliveryError(f"Resend API error: {e.response.status_code}") from e
            except httpx.HTTPError as e:
                logger.error(f"❌ Resend request failed: {e}")
                raise EmailDeliveryError(f"Resend request failed: {e}") from e

        data = response.json()
        logger.info(f"✅ Email sent to {to}: {data.get('id')}")
        return {
            "id": data.get("id"),
            "status": "sent",
            "to": to,
            "subject": subject
        }
