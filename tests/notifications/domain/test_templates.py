import pytest
from notifications.kinds import NotificationType
from notifications.templates import TEMPLATE_REGISTRY, get_template

CONTEXT = {
    "order_number": "ALN-LX2K9Q-7FJ3K2PA",
    "customer_name": "Jane Doe",
    "total": "49.00",
    "currency": "EUR",
}


def test_every_type_has_a_template():
    assert set(TEMPLATE_REGISTRY) == {t.value for t in NotificationType}


def test_unknown_type():
    with pytest.raises(ValueError):
        get_template("Newsletter")


def test_order_confirmation_lists_lines():
    rendered = get_template("OrderConfirmation").render({**CONTEXT, "lines": ["1 x Eau de Parfum 50ml @ 49.00 EUR"]})
    assert rendered["subject"] == "Order confirmation - ALN-LX2K9Q-7FJ3K2PA"
    assert "1 x Eau de Parfum 50ml" in rendered["body"]


def test_bank_transfer_uses_order_number_as_reference():
    rendered = get_template("BankTransferInstructions").render(
        {**CONTEXT, "recipient": "ALDENAIR", "iban": "DE00 0000", "bic": "XXXX", "bank_name": "Example Bank"}
    )
    assert "Reference: ALN-LX2K9Q-7FJ3K2PA" in rendered["body"]
    assert "IBAN: DE00 0000" in rendered["body"]
    assert "49.00 EUR" in rendered["body"]


def test_shipping_notice_has_tracking_number():
    rendered = get_template("ShippingNotice").render({**CONTEXT, "tracking_number": "TRACK-1", "carrier": "DHL"})
    assert "TRACK-1" in rendered["body"]


def test_admin_alert_subject():
    rendered = get_template("AdminNewOrder").render(CONTEXT)
    assert rendered["subject"] == "New order ALN-LX2K9Q-7FJ3K2PA (49.00 EUR)"
