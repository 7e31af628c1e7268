"""Resend email adapter — delivers through the Resend HTTP API."""

import httpx
import structlog

from notifications.channel.email_port import EmailPort, SendResult, delivered, not_delivered

logger = structlog.get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class ResendEmailAdapter(EmailPort):
    def __init__(
        self,
        api_key: str,
        from_email: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self.from_email = from_email
        self._client = client or httpx.Client(timeout=timeout)

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> SendResult:
        payload = {
            "from": self.from_email,
            "to": [to],
            "subject": subject,
            "text": body,
        }
        if html_body:
            payload["html"] = html_body

        try:
            response = self._client.post(
                RESEND_API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as e:
            logger.warning("Email provider unreachable", error=str(e))
            return not_delivered(str(e))

        if response.status_code >= 400:
            return not_delivered(f"Resend returned {response.status_code}: {response.text[:200]}")

        try:
            message_id = response.json().get("id")
        except ValueError:
            # Accepted, but the body is unreadable; the message still went out
            message_id = None
        return delivered(message_id)
