"""Stripe adapter tests with an injected client and real webhook signatures."""

import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pytest
import stripe
from payments.gateway.port import LineItem, PaymentGatewayError, PaymentRequest, ProviderEventKind
from payments.gateway.stripe_adapter import StripeGateway, build_line_items

SECRET = "whsec_test_secret"


class FakeSessions:
    def __init__(self):
        self.calls = []
        self.error: Exception | None = None

    def create(self, params=None, options=None):
        self.calls.append({"params": params, "options": options})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(id="cs_test_a1b2c3", url="https://checkout.stripe.test/c/pay/cs_test_a1b2c3")


@pytest.fixture()
def sessions():
    return FakeSessions()


@pytest.fixture()
def gateway(sessions):
    client = SimpleNamespace(v1=SimpleNamespace(checkout=SimpleNamespace(sessions=sessions)))
    return StripeGateway(api_key="sk_test_123", webhook_secret=SECRET, client=client)


def _request(**overrides):
    values = {
        "order_id": "order-1",
        "order_number": "ALN-1-AAAAAAAA",
        "amount_cents": 7990,
        "currency": "EUR",
        "line_items": (LineItem(title="Eau de Parfum 100ml", quantity=1, unit_price_cents=7990),),
        "return_url": "http://localhost:8000/checkout/success?order=ALN-1-AAAAAAAA",
        "cancel_url": "http://localhost:8000/checkout/cancel?order=ALN-1-AAAAAAAA",
        "customer_email": "guest@example.com",
    }
    values.update(overrides)
    return PaymentRequest(**values)


def _sign(payload: str, secret: str = SECRET, timestamp: int | None = None) -> str:
    timestamp = timestamp or int(time.time())
    signature = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


class TestLineItems:
    def test_shipping_becomes_a_line(self):
        items = build_line_items(_request(amount_cents=8485, shipping_cents=495))
        assert [i["price_data"]["unit_amount"] for i in items] == [7990, 495]

    def test_discounted_order_is_one_line(self):
        items = build_line_items(_request(amount_cents=7190, discount_cents=800))
        assert len(items) == 1
        assert items[0]["price_data"]["unit_amount"] == 7190
        assert items[0]["price_data"]["currency"] == "eur"


class TestCreatePayment:
    def test_creates_checkout_session(self, gateway, sessions):
        session = gateway.create_payment(_request())

        assert session.provider == "stripe"
        assert session.provider_ref == "cs_test_a1b2c3"
        assert session.redirect_url.startswith("https://checkout.stripe.test/")

        call = sessions.calls[0]
        assert call["params"]["client_reference_id"] == "order-1"
        assert call["params"]["metadata"]["order_number"] == "ALN-1-AAAAAAAA"
        assert call["options"] == {"idempotency_key": "checkout-order-1"}

    def test_line_sum_must_match_amount(self, gateway, sessions):
        with pytest.raises(PaymentGatewayError) as exc:
            gateway.create_payment(_request(amount_cents=9999))
        assert exc.value.reason == "amount_mismatch"
        assert sessions.calls == []

    def test_stripe_error_becomes_gateway_error(self, gateway, sessions):
        sessions.error = stripe.APIConnectionError("Request timed out")
        with pytest.raises(PaymentGatewayError) as exc:
            gateway.create_payment(_request())
        assert exc.value.provider == "stripe"


class TestWebhookSignature:
    PAYLOAD = json.dumps(
        {
            "id": "evt_1",
            "type": "checkout.session.completed",
            "data": {"object": {"id": "cs_test_a1b2c3", "payment_status": "paid"}},
        }
    )

    def test_valid_signature(self, gateway):
        assert gateway.verify_webhook_signature(self.PAYLOAD, {"Stripe-Signature": _sign(self.PAYLOAD)}) is True

    def test_wrong_secret(self, gateway):
        header = _sign(self.PAYLOAD, secret="whsec_other")
        assert gateway.verify_webhook_signature(self.PAYLOAD, {"Stripe-Signature": header}) is False

    def test_tampered_payload(self, gateway):
        header = _sign(self.PAYLOAD)
        tampered = self.PAYLOAD.replace("cs_test_a1b2c3", "cs_test_zzz")
        assert gateway.verify_webhook_signature(tampered, {"stripe-signature": header}) is False

    def test_stale_timestamp(self, gateway):
        header = _sign(self.PAYLOAD, timestamp=int(time.time()) - 3600)
        assert gateway.verify_webhook_signature(self.PAYLOAD, {"Stripe-Signature": header}) is False

    def test_no_secret_configured(self):
        gateway = StripeGateway(api_key="sk_test_123", client=SimpleNamespace())
        assert gateway.verification_configured is False
        assert gateway.verify_webhook_signature(self.PAYLOAD, {"Stripe-Signature": _sign(self.PAYLOAD)}) is False


class TestParseEvent:
    def _event(self, event_type, **data):
        return json.dumps({"id": "evt_1", "type": event_type, "data": {"object": {"id": "cs_test_a1b2c3", **data}}})

    def test_completed_paid_session(self, gateway):
        event = gateway.parse_event(self._event("checkout.session.completed", payment_status="paid"))
        assert event.kind == ProviderEventKind.PAYMENT_SUCCEEDED
        assert event.provider_ref == "cs_test_a1b2c3"

    def test_completed_but_unpaid_waits(self, gateway):
        event = gateway.parse_event(self._event("checkout.session.completed", payment_status="unpaid"))
        assert event.kind == ProviderEventKind.UNHANDLED

    def test_expired_session(self, gateway):
        event = gateway.parse_event(self._event("checkout.session.expired"))
        assert event.kind == ProviderEventKind.SESSION_EXPIRED

    def test_unknown_type(self, gateway):
        assert gateway.parse_event(self._event("customer.created")).kind == ProviderEventKind.UNHANDLED

    def test_malformed(self, gateway):
        from payments.gateway.port import WebhookPayloadError

        with pytest.raises(WebhookPayloadError):
            gateway.parse_event('{"type": "checkout.session.completed"}')
