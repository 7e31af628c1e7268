"""Webhook reconciliation — turns verified provider callbacks into order status.

Nothing in a webhook body is trusted before its signature is verified. A
verified event is correlated to an order by the provider reference stored at
checkout (never by order number), and the status change is applied through
the order store's guarded transition, so duplicate or reordered deliveries
change nothing and trigger no side effects.
"""

from collections.abc import Mapping
from enum import Enum

import structlog
from payments.gateway.port import (
    PaymentGateway,
    ProviderEvent,
    ProviderEventKind,
    WebhookPayloadError,
)
from payments.settings import GatewaySettings
from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

from ordering.order.payment import ConfirmOrderPayment, ExpireOrder

logger = structlog.get_logger(__name__)


class WebhookOutcome(Enum):
    PROCESSED = "processed"
    UNCHANGED = "unchanged"
    IGNORED = "ignored"


class WebhookRejected(Exception):
    """The callback failed verification or could not be parsed."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class WebhookReconciler:
    def __init__(self, gateway: PaymentGateway, settings: GatewaySettings) -> None:
        self.gateway = gateway
        self.settings = settings

    def handle(self, payload: bytes | str, headers: Mapping[str, str]) -> WebhookOutcome:
        """Verify, parse and apply one provider callback.

        Raises:
            WebhookRejected: bad signature, verification unavailable, or a
                malformed body. No order is touched in that case.
        """
        body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        self._verify(body, headers)

        try:
            event = self.gateway.parse_event(body)
        except WebhookPayloadError as e:
            logger.warning("Malformed webhook rejected", provider=self.gateway.provider, error=str(e))
            raise WebhookRejected("malformed_payload", str(e)) from e

        return self.reconcile(event)

    def _verify(self, body: str, headers: Mapping[str, str]) -> None:
        provider = self.gateway.provider

        if self.gateway.verification_configured:
            if not self.gateway.verify_webhook_signature(body, headers):
                logger.warning("security.webhook_signature_invalid", provider=provider)
                raise WebhookRejected("invalid_signature", "Webhook signature verification failed")
            return

        if self.settings.unsigned_webhooks_permitted:
            logger.warning("security.webhook_unsigned_accepted", provider=provider)
            return

        logger.warning(
            "security.webhook_unverifiable",
            provider=provider,
            environment=self.settings.environment,
        )
        raise WebhookRejected("verification_unavailable", "No webhook secret configured for this provider")

    def reconcile(self, event: ProviderEvent) -> WebhookOutcome:
        """Apply an already trusted provider event (webhook or capture response)."""
        log = logger.bind(
            provider=event.provider,
            event_type=event.event_type,
            event_id=event.event_id,
            provider_ref=event.provider_ref,
        )

        if event.kind == ProviderEventKind.PAYMENT_SUCCEEDED:
            command_cls = ConfirmOrderPayment
        elif event.kind == ProviderEventKind.SESSION_EXPIRED:
            command_cls = ExpireOrder
        elif event.kind == ProviderEventKind.PAYMENT_FAILED:
            # The session stays open; the customer may still pay, or it expires
            log.info("Payment attempt failed at provider")
            return WebhookOutcome.IGNORED
        else:
            log.info("Unhandled webhook event acknowledged")
            return WebhookOutcome.IGNORED

        if not event.provider_ref:
            log.warning("Webhook event without provider reference")
            return WebhookOutcome.IGNORED

        command = command_cls(provider_ref=event.provider_ref, provider_event_id=event.event_id)
        try:
            transitioned = current_domain.process(command, asynchronous=False)
        except ExpectedVersionError:
            log.info("Concurrent status update won the race")
            return WebhookOutcome.UNCHANGED

        if transitioned:
            log.info("Webhook applied")
            return WebhookOutcome.PROCESSED

        log.info("Webhook produced no transition")
        return WebhookOutcome.UNCHANGED
