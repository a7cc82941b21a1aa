"""
Email Provider

Pluggable email delivery. Resend is used when an API key is configured;
the console provider logs messages in development and tests.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from app.config import settings

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


@dataclass
class EmailMessage:
    """Email message to send."""
    to: str
    subject: str
    html_body: str
    plain_text_body: str
    from_email: Optional[str] = None
    reply_to: Optional[str] = None


@dataclass
class SendResult:
    """Outcome of one send; providers report failures here instead of raising."""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class EmailProvider(ABC):
    """Base class for email providers."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> SendResult:
        ...

    @abstractmethod
    def is_configured(self) -> bool:
        ...


class ResendProvider(EmailProvider):
    """
    Resend HTTP API.

    https://resend.com/docs/api-reference/emails/send-email
    """

    def __init__(self, api_key: str, from_email: Optional[str] = None, timeout: float = 30.0):
        self.api_key = api_key
        self.from_email = from_email or settings.EMAIL_FROM
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _payload(self, message: EmailMessage) -> Dict[str, Any]:
        payload = {
            "from": message.from_email or self.from_email,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html_body,
            "text": message.plain_text_body,
        }
        if message.reply_to:
            payload["reply_to"] = message.reply_to
        return payload

    async def send(self, message: EmailMessage) -> SendResult:
        if not self.is_configured():
            return SendResult(success=False, error="Resend API key not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    RESEND_API_URL,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json=self._payload(message),
                )
        except httpx.HTTPError as e:
            logger.exception(f"Resend request failed for {message.to}")
            return SendResult(success=False, error=str(e))

        if response.status_code >= 300:
            logger.error(f"Resend rejected email to {message.to}: {response.status_code} {response.text}")
            return SendResult(success=False, error=response.text)

        return SendResult(success=True, message_id=response.json().get("id"))


class ConsoleProvider(EmailProvider):
    """Logs emails instead of sending them."""

    def is_configured(self) -> bool:
        return True

    async def send(self, message: EmailMessage) -> SendResult:
        logger.info(
            f"[email] to={message.to} subject={message.subject!r}\n{message.plain_text_body}"
        )
        return SendResult(success=True, message_id="console")


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================

def get_email_provider(
    resend_api_key: Optional[str] = None,
    console_mode: bool = False,
) -> EmailProvider:
    """
    Pick an email provider.

    Console mode wins, then Resend when a key is given; otherwise the
    console provider is used with a warning.
    """
    if console_mode:
        return ConsoleProvider()

    if resend_api_key:
        return ResendProvider(api_key=resend_api_key)

    logger.warning("No email provider configured, using console fallback")
    return ConsoleProvider()


def get_default_email_provider() -> EmailProvider:
    """Email provider chosen from application settings."""
    return get_email_provider(
        resend_api_key=settings.RESEND_API_KEY,
        console_mode=settings.APP_ENV in ("development", "test"),
    )
