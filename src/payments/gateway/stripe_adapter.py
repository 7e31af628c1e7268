"""Stripe hosted-checkout adapter (card payments).

Creates Checkout Sessions with server-priced line items and verifies
webhooks with the endpoint's signing secret. The SDK's request client is
built with a bounded timeout; a timeout surfaces as PaymentGatewayError like
any other provider failure.
"""

import json
from collections.abc import Mapping

import stripe
import structlog

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

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "Stripe-Signature"

_EVENT_KINDS = {
    "checkout.session.completed": ProviderEventKind.PAYMENT_SUCCEEDED,
    "checkout.session.async_payment_succeeded": ProviderEventKind.PAYMENT_SUCCEEDED,
    "checkout.session.expired": ProviderEventKind.SESSION_EXPIRED,
    "checkout.session.async_payment_failed": ProviderEventKind.PAYMENT_FAILED,
    "payment_intent.payment_failed": ProviderEventKind.PAYMENT_FAILED,
}


def build_line_items(request: PaymentRequest) -> list[dict]:
    """Stripe line items whose amounts add up to ``request.amount_cents``.

    Discounted orders are sent as a single order-level line, since a Checkout
    Session cannot carry an ad-hoc negative line.
    """
    currency = request.currency.lower()

    if request.discount_cents:
        return [
            {
                "price_data": {
                    "currency": currency,
                    "unit_amount": request.amount_cents,
                    "product_data": {"name": f"Order {request.order_number}"},
                },
                "quantity": 1,
            }
        ]

    items = [
        {
            "price_data": {
                "currency": currency,
                "unit_amount": item.unit_price_cents,
                "product_data": {"name": item.title},
            },
            "quantity": item.quantity,
        }
        for item in request.line_items
    ]
    if request.shipping_cents:
        items.append(
            {
                "price_data": {
                    "currency": currency,
                    "unit_amount": request.shipping_cents,
                    "product_data": {"name": "Shipping"},
                },
                "quantity": 1,
            }
        )
    return items


class StripeGateway(PaymentGateway):
    provider = "stripe"

    def __init__(
        self,
        api_key: str,
        webhook_secret: str | None = None,
        timeout: float = 10.0,
        client=None,
        signature_tolerance: int = 300,
    ) -> None:
        self.webhook_secret = webhook_secret
        self.signature_tolerance = signature_tolerance
        self._client = client or stripe.StripeClient(
            api_key,
            http_client=stripe.RequestsClient(timeout=timeout),
            max_network_retries=1,
        )

    def create_payment(self, request: PaymentRequest) -> PaymentSession:
        reject_non_positive(request, self.provider)

        line_items = build_line_items(request)
        line_sum = sum(item["price_data"]["unit_amount"] * item["quantity"] for item in line_items)
        if line_sum != request.amount_cents:
            raise PaymentGatewayError(
                f"Line items add up to {line_sum}, expected {request.amount_cents}",
                reason="amount_mismatch",
                provider=self.provider,
            )

        params = {
            "mode": "payment",
            "line_items": line_items,
            "success_url": request.return_url,
            "cancel_url": request.cancel_url,
            "client_reference_id": request.order_id,
            "metadata": {
                "order_id": request.order_id,
                "order_number": request.order_number,
            },
        }
        if request.customer_email:
            params["customer_email"] = request.customer_email

        try:
            session = self._client.v1.checkout.sessions.create(
                params=params,
                options={"idempotency_key": f"checkout-{request.order_id}"},
            )
        except stripe.StripeError as e:
            logger.error(
                "Stripe session creation failed",
                order_number=request.order_number,
                error=str(e),
            )
            raise PaymentGatewayError(str(e), reason="provider_rejected", provider=self.provider) from e

        if not getattr(session, "url", None):
            raise PaymentGatewayError("Stripe session has no checkout URL", reason="missing_redirect", provider=self.provider)

        logger.info(
            "Stripe checkout session created",
            order_number=request.order_number,
            session_id=session.id,
        )
        return PaymentSession(provider=self.provider, provider_ref=session.id, redirect_url=session.url)

    @property
    def verification_configured(self) -> bool:
        return bool(self.webhook_secret)

    def verify_webhook_signature(self, payload: str, headers: Mapping[str, str]) -> bool:
        signature = header_value(headers, SIGNATURE_HEADER)
        if not self.webhook_secret or not signature:
            return False
        try:
            return stripe.WebhookSignature.verify_header(
                payload,
                signature,
                self.webhook_secret,
                self.signature_tolerance,
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Stripe signature rejected", error=str(e))
            return False

    def parse_event(self, payload: str) -> ProviderEvent:
        try:
            body = json.loads(payload)
            event_type = body["type"]
            data_object = body["data"]["object"]
        except (ValueError, TypeError, KeyError) as e:
            raise WebhookPayloadError(f"Malformed Stripe event: {e}") from e

        kind = _EVENT_KINDS.get(event_type, ProviderEventKind.UNHANDLED)
        # Delayed payment methods complete the session before the money arrives
        if event_type == "checkout.session.completed" and data_object.get("payment_status") == "unpaid":
            kind = ProviderEventKind.UNHANDLED

        provider_ref = data_object.get("id") if event_type.startswith("checkout.session.") else None

        return ProviderEvent(
            provider=self.provider,
            kind=kind,
            event_type=event_type,
            event_id=body.get("id"),
            provider_ref=provider_ref,
            raw=body,
        )
