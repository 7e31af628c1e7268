"""BDD tests for checkout and payment reconciliation."""

import json

import pytest
from notifications.kinds import NotificationType
from ordering.checkout.results import CheckoutAction
from ordering.coupon.management import CreateCoupon
from ordering.notification.notification import Notification
from ordering.order.order import Order
from ordering.order.reconciliation import WebhookReconciler
from payments.gateway import get_gateway, get_gateway_settings
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/checkout.feature")


@pytest.fixture()
def cart_lines():
    return []


@pytest.fixture()
def outcome():
    return {}


@pytest.fixture()
def checkout_extras():
    return {}


def _order(outcome):
    return current_domain.repository_for(Order).get(outcome["result"].order_id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the catalog sells "{product_id}" variant "{variant_id}" at {price:f}'))
def _(catalog, product_id, variant_id, price):
    catalog.add_variant(product_id, variant_id, f"{product_id} {variant_id}", round(price * 100))


@given(parsers.cfparse('a guest cart with {quantity:d} x "{product_id}" "{variant_id}"'))
def _(cart_lines, quantity, product_id, variant_id):
    cart_lines.append((product_id, variant_id, quantity))


@given(parsers.cfparse('the guest applies a coupon "{code}" worth {amount:f}'))
def _(checkout_extras, code, amount):
    current_domain.process(
        CreateCoupon(code=code, discount_type="fixed", amount_off_cents=round(amount * 100)),
        asynchronous=False,
    )
    checkout_extras["coupon_code"] = code


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
def _checkout(service, checkout_request, cart_lines, payment_method, **extra):
    try:
        result = service.place_order(checkout_request(lines=cart_lines, payment_method=payment_method, **extra))
    except ValidationError as exc:
        return {"error": exc}
    return {"result": result}


@when(parsers.cfparse('the guest checks out with "{payment_method}"'), target_fixture="outcome")
def _(service, checkout_request, cart_lines, checkout_extras, payment_method):
    return _checkout(service, checkout_request, cart_lines, payment_method, **checkout_extras)


def _deliver_success(outcome, event_id):
    order = _order(outcome)
    gateway = get_gateway(order.payment_provider)
    payload = json.dumps({"id": event_id, "type": "payment_succeeded", "provider_ref": order.provider_ref})
    WebhookReconciler(gateway, get_gateway_settings()).handle(payload, {"X-Gateway-Signature": "test-signature"})


@when("the provider reports the payment succeeded")
def _(outcome):
    _deliver_success(outcome, "evt_1")


@when("the provider reports the payment succeeded again")
def _(outcome):
    _deliver_success(outcome, "evt_2")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order is stored with status "{status}"'))
def _(outcome, status):
    assert _order(outcome).status == status


@then(parsers.cfparse("the checkout shows bank details for {amount:f} referencing the order number"))
def _(outcome, amount):
    result = outcome["result"]
    assert result.action == CheckoutAction.BANK_TRANSFER
    assert result.bank_transfer.amount_cents == round(amount * 100)
    assert result.bank_transfer.reference == result.order_number


@then("the checkout redirects to the payment provider")
def _(outcome):
    result = outcome["result"]
    assert result.action == CheckoutAction.REDIRECT
    assert result.redirect_url


@then(parsers.cfparse('the checkout is rejected with "{code}"'))
def _(outcome, code):
    assert "result" not in outcome
    assert code in outcome["error"].messages


@then("no order is stored")
def _():
    assert current_domain.repository_for(Order)._dao.query.all().total == 0


@then(parsers.cfparse("exactly {count:d} payment confirmation is sent"))
def _(count):
    notifications = current_domain.repository_for(Notification)._dao.query.all().items
    confirmations = [
        n for n in notifications if n.notification_type == NotificationType.PAYMENT_CONFIRMATION.value
    ]
    assert len(confirmations) == count
