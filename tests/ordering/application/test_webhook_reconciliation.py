"""Application tests for WebhookReconciler against the fake gateway."""

import json

import pytest
from ordering.commission.commission import CommissionRecord
from ordering.order.order import Order, OrderStatus
from ordering.order.payment import ConfirmBankTransfer
from ordering.order.reconciliation import WebhookOutcome, WebhookReconciler, WebhookRejected
from payments.gateway import get_gateway
from payments.gateway.port import ProviderEvent, ProviderEventKind
from payments.settings import GatewaySettings
from protean import current_domain

SIGNED = {"X-Gateway-Signature": "test-signature"}


def _payload(event_type, provider_ref, event_id="evt_1"):
    return json.dumps({"id": event_id, "type": event_type, "provider_ref": provider_ref})


@pytest.fixture()
def reconciler():
    return WebhookReconciler(get_gateway("stripe"), GatewaySettings(environment="test"))


@pytest.fixture()
def card_order(service, checkout_request):
    result = service.place_order(checkout_request(payment_method="card"))
    return current_domain.repository_for(Order).get(result.order_id)


def _reload(order):
    return current_domain.repository_for(Order).get(order.id)


class TestPaymentSucceeded:
    def test_marks_order_paid(self, reconciler, card_order):
        outcome = reconciler.handle(_payload("payment_succeeded", card_order.provider_ref), SIGNED)

        assert outcome == WebhookOutcome.PROCESSED
        order = _reload(card_order)
        assert order.status == OrderStatus.PAID.value
        assert order.paid_at is not None

    def test_duplicate_delivery_changes_nothing(self, reconciler, card_order, email):
        reconciler.handle(_payload("payment_succeeded", card_order.provider_ref), SIGNED)
        outcome = reconciler.handle(_payload("payment_succeeded", card_order.provider_ref), SIGNED)

        assert outcome == WebhookOutcome.UNCHANGED
        confirmations = [e for e in email.emails_to("guest@example.com") if e["subject"].startswith("Payment received")]
        assert len(confirmations) == 1

    def test_late_expiry_does_not_undo_payment(self, reconciler, card_order):
        reconciler.handle(_payload("payment_succeeded", card_order.provider_ref), SIGNED)
        outcome = reconciler.handle(_payload("session_expired", card_order.provider_ref, "evt_2"), SIGNED)

        assert outcome == WebhookOutcome.UNCHANGED
        assert _reload(card_order).status == OrderStatus.PAID.value

    def test_bytes_payload_accepted(self, reconciler, card_order):
        outcome = reconciler.handle(_payload("payment_succeeded", card_order.provider_ref).encode(), SIGNED)
        assert outcome == WebhookOutcome.PROCESSED


class TestSessionExpired:
    def test_marks_order_expired(self, reconciler, card_order):
        outcome = reconciler.handle(_payload("session_expired", card_order.provider_ref), SIGNED)

        assert outcome == WebhookOutcome.PROCESSED
        assert _reload(card_order).status == OrderStatus.EXPIRED.value

    def test_payment_after_expiry_is_not_applied(self, reconciler, card_order):
        reconciler.handle(_payload("session_expired", card_order.provider_ref), SIGNED)
        outcome = reconciler.handle(_payload("payment_succeeded", card_order.provider_ref, "evt_2"), SIGNED)

        assert outcome == WebhookOutcome.UNCHANGED
        assert _reload(card_order).status == OrderStatus.EXPIRED.value


class TestIgnoredEvents:
    def test_unknown_reference_is_acknowledged(self, reconciler, card_order):
        outcome = reconciler.handle(_payload("payment_succeeded", "fake_stripe_unknown"), SIGNED)
        assert outcome == WebhookOutcome.UNCHANGED
        assert _reload(card_order).status == OrderStatus.PENDING.value

    def test_unhandled_event_type(self, reconciler, card_order):
        outcome = reconciler.handle(_payload("customer.created", card_order.provider_ref), SIGNED)
        assert outcome == WebhookOutcome.IGNORED

    def test_payment_failed_leaves_order_pending(self, reconciler, card_order):
        outcome = reconciler.handle(_payload("payment_failed", card_order.provider_ref), SIGNED)
        assert outcome == WebhookOutcome.IGNORED
        assert _reload(card_order).status == OrderStatus.PENDING.value

    def test_event_without_reference(self, reconciler):
        outcome = reconciler.reconcile(
            ProviderEvent(provider="stripe", kind=ProviderEventKind.PAYMENT_SUCCEEDED, event_type="payment_succeeded")
        )
        assert outcome == WebhookOutcome.IGNORED

    def test_correlation_is_by_reference_not_order_number(self, reconciler, card_order):
        outcome = reconciler.handle(_payload("payment_succeeded", card_order.order_number), SIGNED)
        assert outcome == WebhookOutcome.UNCHANGED
        assert _reload(card_order).status == OrderStatus.PENDING.value


class TestVerification:
    def test_bad_signature_rejected(self, reconciler, card_order):
        with pytest.raises(WebhookRejected) as exc:
            reconciler.handle(
                _payload("payment_succeeded", card_order.provider_ref),
                {"X-Gateway-Signature": "forged"},
            )
        assert exc.value.reason == "invalid_signature"
        assert _reload(card_order).status == OrderStatus.PENDING.value

    def test_malformed_payload_rejected(self, reconciler):
        with pytest.raises(WebhookRejected) as exc:
            reconciler.handle("{not json", SIGNED)
        assert exc.value.reason == "malformed_payload"


class TestBankTransferConfirmation:
    def test_confirm_bank_transfer(self, service, checkout_request):
        result = service.place_order(checkout_request(payment_method="bank_transfer"))

        assert current_domain.process(ConfirmBankTransfer(order_id=result.order_id), asynchronous=False) is True
        order = current_domain.repository_for(Order).get(result.order_id)
        assert order.status == OrderStatus.PAID.value

        assert current_domain.process(ConfirmBankTransfer(order_id=result.order_id), asynchronous=False) is False


class TestCommissionOnPayment:
    def test_partner_credited_once(self, reconciler, service, checkout_request, approved_partner):
        result = service.place_order(checkout_request(payment_method="card", referral_code="SCENT"))
        order = current_domain.repository_for(Order).get(result.order_id)

        reconciler.handle(_payload("payment_succeeded", order.provider_ref), SIGNED)
        reconciler.handle(_payload("payment_succeeded", order.provider_ref, "evt_2"), SIGNED)

        record = current_domain.repository_for(CommissionRecord)._dao.query.filter(order_id=result.order_id).all().first
        assert record.eligible is True
        partner = current_domain.repository_for(type(approved_partner)).get(approved_partner.id)
        assert partner.pending_earnings_cents == record.amount_cents == 123
