"""Configurable fake payment gateway for development and testing.

Simulates a hosted-checkout provider without any external calls. It can be
configured at runtime to succeed or fail, and records every call so tests
can assert on what was sent.

Webhooks are signed with the literal header ``X-Gateway-Signature:
test-signature`` and carry a normalised body::

    {"id": "evt_1", "type": "payment_succeeded", "provider_ref": "fake_..."}
"""

import json
from collections.abc import Mapping
from uuid import uuid4

from payments.gateway.port import (
    PaymentGateway,
    PaymentGatewayError,
    PaymentRequest,
    PaymentSession,
    ProviderEvent,
    ProviderEventKind,
    WebhookPayloadError,
    header_value,
    reject_non_positive,
)

SIGNATURE_HEADER = "X-Gateway-Signature"
TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, provider: str = "fake") -> None:
        self.provider = provider
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment provider unavailable"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Payment provider unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_payment(self, request: PaymentRequest) -> PaymentSession:
        reject_non_positive(request, self.provider)
        self.calls.append({"method": "create_payment", "request": request})

        if not self.should_succeed:
            raise PaymentGatewayError(self.failure_reason, reason="provider_rejected", provider=self.provider)

        provider_ref = f"fake_{self.provider}_{uuid4().hex[:12]}"
        return PaymentSession(
            provider=self.provider,
            provider_ref=provider_ref,
            redirect_url=f"https://payments.example.test/{self.provider}/{provider_ref}",
        )

    @property
    def verification_configured(self) -> bool:
        return True

    def verify_webhook_signature(self, payload: str, headers: Mapping[str, str]) -> bool:  # noqa: ARG002
        return header_value(headers, SIGNATURE_HEADER) == TEST_SIGNATURE

    def parse_event(self, payload: str) -> ProviderEvent:
        try:
            body = json.loads(payload)
            event_type = body["type"]
        except (ValueError, TypeError, KeyError) as e:
            raise WebhookPayloadError(f"Malformed fake webhook: {e}") from e

        try:
            kind = ProviderEventKind(event_type)
        except ValueError:
            kind = ProviderEventKind.UNHANDLED

        return ProviderEvent(
            provider=self.provider,
            kind=kind,
            event_type=event_type,
            event_id=body.get("id"),
            provider_ref=body.get("provider_ref"),
            raw=body,
        )

    def capture(self, provider_ref: str) -> ProviderEvent:
        self.calls.append({"method": "capture", "provider_ref": provider_ref})
        if not self.should_succeed:
            raise PaymentGatewayError(self.failure_reason, reason="capture_failed", provider=self.provider)
        return ProviderEvent(
            provider=self.provider,
            kind=ProviderEventKind.PAYMENT_SUCCEEDED,
            event_type="capture",
            event_id=f"capture_{uuid4().hex[:12]}",
            provider_ref=provider_ref,
        )
