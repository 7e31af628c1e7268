"""Integration tests for webhook, capture and gateway endpoints via TestClient."""

import json

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.order.order import Order, OrderStatus
from payments.api.routes import payment_router
from payments.gateway import get_gateway, set_gateway_settings
from payments.settings import GatewaySettings
from protean import current_domain
from protean.integrations.fastapi import register_exception_handlers

SIGNED = {"X-Gateway-Signature": "test-signature", "Content-Type": "application/json"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(payment_router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def card_order(service, checkout_request):
    result = service.place_order(checkout_request(payment_method="card"))
    return current_domain.repository_for(Order).get(result.order_id)


@pytest.fixture()
def wallet_order(service, checkout_request):
    result = service.place_order(checkout_request(payment_method="wallet_redirect"))
    return current_domain.repository_for(Order).get(result.order_id)


def _event(event_type, provider_ref, event_id="evt_1"):
    return json.dumps({"id": event_id, "type": event_type, "provider_ref": provider_ref})


class TestWebhooks:
    def test_payment_succeeded(self, client, card_order):
        response = client.post(
            "/payments/webhooks/stripe",
            content=_event("payment_succeeded", card_order.provider_ref),
            headers=SIGNED,
        )
        assert response.status_code == 200
        assert response.json() == {"status": "processed"}
        assert current_domain.repository_for(Order).get(card_order.id).status == OrderStatus.PAID.value

    def test_redelivery_is_acknowledged(self, client, card_order):
        body = _event("payment_succeeded", card_order.provider_ref)
        client.post("/payments/webhooks/stripe", content=body, headers=SIGNED)
        response = client.post("/payments/webhooks/stripe", content=body, headers=SIGNED)

        assert response.status_code == 200
        assert response.json() == {"status": "unchanged"}

    def test_unhandled_event_acknowledged(self, client, card_order):
        response = client.post(
            "/payments/webhooks/stripe",
            content=_event("charge.refunded", card_order.provider_ref),
            headers=SIGNED,
        )
        assert response.status_code == 200
        assert response.json() == {"status": "ignored"}

    def test_bad_signature(self, client, card_order):
        response = client.post(
            "/payments/webhooks/stripe",
            content=_event("payment_succeeded", card_order.provider_ref),
            headers={"X-Gateway-Signature": "nope"},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "invalid_signature"
        assert current_domain.repository_for(Order).get(card_order.id).status == OrderStatus.PENDING.value

    def test_malformed_body(self, client):
        response = client.post("/payments/webhooks/stripe", content="not json", headers=SIGNED)
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "malformed_payload"

    def test_unknown_provider(self, client):
        response = client.post("/payments/webhooks/bitcoin", content="{}", headers=SIGNED)
        assert response.status_code == 404

    def test_unconfigured_live_provider(self, client):
        set_gateway_settings(GatewaySettings(adapter="live", environment="test"))

        response = client.post("/payments/webhooks/stripe", content=_event("payment_succeeded", "cs_1"), headers=SIGNED)

        assert response.status_code == 503
        assert response.json()["detail"]["code"] == "not_configured"


class TestPayPalCapture:
    def test_capture_marks_order_paid(self, client, wallet_order):
        response = client.post("/payments/paypal/capture", json={"remote_order_id": wallet_order.provider_ref})

        assert response.status_code == 200
        body = response.json()
        assert body["order_number"] == wallet_order.order_number
        assert body["status"] == OrderStatus.PAID.value
        assert body["outcome"] == "processed"

    def test_second_capture_changes_nothing(self, client, wallet_order):
        client.post("/payments/paypal/capture", json={"remote_order_id": wallet_order.provider_ref})
        response = client.post("/payments/paypal/capture", json={"remote_order_id": wallet_order.provider_ref})
        assert response.json()["outcome"] == "unchanged"

    def test_unknown_remote_order(self, client):
        response = client.post("/payments/paypal/capture", json={"remote_order_id": "NOPE"})
        assert response.status_code == 404

    def test_capture_failure(self, client, wallet_order):
        get_gateway("paypal").configure(should_succeed=False, failure_reason="INSTRUMENT_DECLINED")

        response = client.post("/payments/paypal/capture", json={"remote_order_id": wallet_order.provider_ref})

        assert response.status_code == 502
        assert response.json()["detail"]["order_number"] == wallet_order.order_number
        assert current_domain.repository_for(Order).get(wallet_order.id).status == OrderStatus.PENDING.value

    def test_capture_with_unconfigured_live_provider(self, client, wallet_order):
        set_gateway_settings(GatewaySettings(adapter="live", environment="test"))

        response = client.post("/payments/paypal/capture", json={"remote_order_id": wallet_order.provider_ref})

        assert response.status_code == 502
        assert response.json()["detail"]["order_number"] == wallet_order.order_number


class TestGatewayConfiguration:
    def test_configure_fake_gateway(self, client):
        response = client.post(
            "/payments/gateway/configure",
            json={"provider": "stripe", "should_succeed": False, "failure_reason": "down"},
        )
        assert response.status_code == 200
        assert response.json()["gateway"] == "FakeGateway"
        assert get_gateway("stripe").should_succeed is False

    def test_not_available_in_production(self, client):
        set_gateway_settings(GatewaySettings(environment="production"))
        response = client.post("/payments/gateway/configure", json={"provider": "stripe"})
        assert response.status_code == 403
