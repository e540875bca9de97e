"""Email service for Lightning Lessons using Resend."""

from dataclasses import dataclass, field
from typing import Any

import httpx

from lessons.logging_config import get_logger

logger = get_logger(__name__)


class EmailError(Exception):
    """Error from the Resend API.

    ``payload`` is the upstream error body, untouched, so callers can hand it
    back to clients verbatim.
    """

    def __init__(self, payload: Any, status_code: int | None = None):
        self.payload = payload
        self.status_code = status_code
        message = payload.get("message") if isinstance(payload, dict) else payload
        super().__init__(str(message) if message else "Email provider error")


@dataclass
class EmailMessage:
    """A single outgoing email."""

    sender: str
    to: list[str]
    subject: str
    html: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "from": self.sender,
            "to": self.to,
            "subject": self.subject,
            "html": self.html,
        }


@dataclass
class BatchReceipt:
    """Message ids returned for an accepted batch."""

    ids: list[str] = field(default_factory=list)


class EmailService:
    """Email service using the Resend API.

    Handles transactional emails:
    - Mutual referral promo codes (batch)
    - Newsletter audience signups
    """

    RESEND_API_URL = "https://api.resend.com"

    def __init__(
        self,
        api_key: str | None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize email service.

        Args:
            api_key: Resend API key. Service is disabled without it.
            transport: Optional httpx transport (tests)
        """
        self.api_key = api_key
        self.enabled = bool(api_key)
        self._transport = transport

        if not self.enabled:
            logger.warning("email_service_disabled", reason="RESEND_API_KEY not set")

    async def _post(self, path: str, payload: Any) -> dict[str, Any]:
        """POST to Resend and return the decoded body.

        Raises:
            EmailError: On transport failure or non-2xx response
        """
        if not self.enabled:
            raise EmailError(
                {"name": "not_configured", "message": "Resend API key is not configured"}
            )

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        # No timeout: Resend calls wait as long as the provider takes
        try:
            async with httpx.AsyncClient(
                base_url=self.RESEND_API_URL,
                timeout=None,
                transport=self._transport,
            ) as client:
                response = await client.post(path, json=payload, headers=headers)
        except httpx.RequestError as e:
            logger.error("email_request_error", path=path, error=str(e))
            raise EmailError({"name": "request_error", "message": str(e)}) from e

        try:
            body = response.json()
        except ValueError:
            body = response.text

        if response.status_code not in (200, 201, 202):
            logger.error(
                "email_request_failed",
                path=path,
                status=response.status_code,
                body=body,
            )
            raise EmailError(body, status_code=response.status_code)

        return body

    async def send_batch(self, messages: list[EmailMessage]) -> BatchReceipt:
        """Send several emails in one provider call.

        The whole batch succeeds or fails as one; Resend does not report
        per-message status here.

        Returns:
            Receipt with the provider's message ids
        """
        body = await self._post("/emails/batch", [m.to_payload() for m in messages])
        ids = [item.get("id") for item in body.get("data", []) if item.get("id")]

        logger.info(
            "email_batch_sent",
            count=len(messages),
            to=[addr for m in messages for addr in m.to],
        )
        return BatchReceipt(ids=ids)

    async def add_contact(self, audience_id: str, email: str) -> str | None:
        """Add a newsletter subscriber to a Resend audience.

        Returns:
            Contact ID
        """
        body = await self._post(
            f"/audiences/{audience_id}/contacts",
            {"email": email, "unsubscribed": False},
        )
        logger.info("email_contact_added", audience_id=audience_id, email=email)
        return body.get("id")
