"""Transactional email vendor client (MailerSend-compatible JSON API)."""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailSendResult:
    """Outcome of one send request."""

    ok: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class EmailClient:
    """
    Sends one message per call through the vendor's HTTP API.

    Vendor and transport failures are returned as EmailSendResult(ok=False),
    never raised, so callers can log the attempt and move on.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize email client.

        Args:
            api_key: Vendor API token
            base_url: Vendor API base URL
            from_email: Default sender address
            from_name: Default sender name
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_key = api_key if api_key is not None else settings.mailersend_api_key
        self.base_url = (base_url or settings.mailersend_base_url).rstrip("/")
        self.from_email = from_email or settings.from_email
        self.from_name = from_name or settings.from_name
        self.timeout = timeout or settings.email_timeout_seconds
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_payload(
        self,
        to_email: str,
        to_name: str,
        subject: str,
        html: str,
        reply_to: Optional[str] = None,
        text: Optional[str] = None,
    ) -> dict:
        payload = {
            "from": {"email": self.from_email, "name": self.from_name},
            "to": [{"email": to_email, "name": to_name or to_email}],
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text
        if reply_to:
            payload["reply_to"] = {"email": reply_to}
        return payload

    async def send(
        self,
        to_email: str,
        to_name: str,
        subject: str,
        html: str,
        reply_to: Optional[str] = None,
        text: Optional[str] = None,
    ) -> EmailSendResult:
        """
        Send a single email.

        Args:
            to_email: Recipient address
            to_name: Recipient display name
            subject: Subject line
            html: HTML body
            reply_to: Optional reply-to address
            text: Optional plain-text body

        Returns:
            EmailSendResult describing the outcome
        """
        if not self.is_configured:
            logger.error("Email vendor API key is not configured")
            return EmailSendResult(ok=False, error="Email service not configured")

        payload = self.build_payload(to_email, to_name, subject, html, reply_to, text)
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    "/email",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.HTTPError as e:
            logger.error(f"Email request failed: {type(e).__name__}: {e}")
            return EmailSendResult(ok=False, error=f"Email request failed: {e}")

        if response.status_code >= 400:
            logger.warning(
                f"Email vendor rejected message: status={response.status_code}"
            )
            return EmailSendResult(
                ok=False,
                error=f"Email vendor error {response.status_code}: {response.text[:500]}",
            )

        message_id = response.headers.get("x-message-id")
        logger.info(f"Email accepted by vendor: message_id={message_id}")
        return EmailSendResult(ok=True, message_id=message_id)


_email_client: Optional[EmailClient] = None


def get_email_client() -> EmailClient:
    """Get or create global email client instance."""
    global _email_client
    if _email_client is None:
        _email_client = EmailClient()
    return _email_client
