"""Application tests for the emails sent around an order's lifecycle."""

from notifications.kinds import NotificationType
from ordering.notification.delivery import send_notification
from ordering.notification.notification import Notification, NotificationStatus
from ordering.order.administration import RecordShipment
from ordering.order.order import Order
from ordering.order.payment import ConfirmBankTransfer, ConfirmOrderPayment
from protean import current_domain


def _notifications(notification_type=None):
    items = current_domain.repository_for(Notification)._dao.query.all().items
    if notification_type:
        items = [n for n in items if n.notification_type == notification_type]
    return items


class TestOrderPlaced:
    def test_customer_and_admin_are_notified(self, service, checkout_request, email):
        result = service.place_order(checkout_request(payment_method="card"))

        customer_subjects = [e["subject"] for e in email.emails_to("guest@example.com")]
        assert f"Order confirmation - {result.order_number}" in customer_subjects
        admin = email.emails_to("orders@localhost")
        assert len(admin) == 1
        assert result.order_number in admin[0]["subject"]

    def test_bank_transfer_sends_payment_details(self, service, checkout_request, email):
        result = service.place_order(checkout_request(payment_method="bank_transfer"))

        details = [e for e in email.emails_to("guest@example.com") if e["subject"].startswith("Payment details")]
        assert len(details) == 1
        assert f"Reference: {result.order_number}" in details[0]["body"]
        assert "49.00 EUR" in details[0]["body"]

    def test_card_orders_get_no_bank_details(self, service, checkout_request):
        service.place_order(checkout_request(payment_method="card"))
        assert _notifications(NotificationType.BANK_TRANSFER_INSTRUCTIONS.value) == []


class TestOrderPaid:
    def test_payment_confirmation_sent_once(self, service, checkout_request, email):
        result = service.place_order(checkout_request(payment_method="card"))
        order = current_domain.repository_for(Order).get(result.order_id)

        for event_id in ("evt_1", "evt_2"):
            current_domain.process(
                ConfirmOrderPayment(provider_ref=order.provider_ref, provider_event_id=event_id),
                asynchronous=False,
            )

        assert len(_notifications(NotificationType.PAYMENT_CONFIRMATION.value)) == 1

    def test_bank_transfer_confirmation_notifies_customer(self, service, checkout_request):
        result = service.place_order(checkout_request(payment_method="bank_transfer"))
        current_domain.process(ConfirmBankTransfer(order_id=result.order_id), asynchronous=False)

        assert len(_notifications(NotificationType.PAYMENT_CONFIRMATION.value)) == 1


class TestOrderShipped:
    def test_shipping_notice_carries_tracking_number(self, service, checkout_request, email):
        result = service.place_order(checkout_request(payment_method="bank_transfer"))
        current_domain.process(ConfirmBankTransfer(order_id=result.order_id), asynchronous=False)
        current_domain.process(
            RecordShipment(order_id=result.order_id, tracking_number="00340434161234567890", carrier="DHL"),
            asynchronous=False,
        )

        notices = [e for e in email.emails_to("guest@example.com") if "has shipped" in e["subject"]]
        assert len(notices) == 1
        assert "00340434161234567890" in notices[0]["body"]


class TestBestEffortDelivery:
    def test_single_failure_is_retried(self, email):
        email.configure(fail_times=1)

        notification_id = send_notification(
            "guest@example.com",
            NotificationType.PAYMENT_CONFIRMATION.value,
            {"order_number": "ALN-1-AAAAAAAA", "total": "49.00", "currency": "EUR"},
        )

        notification = current_domain.repository_for(Notification).get(notification_id)
        assert notification.status == NotificationStatus.SENT.value
        assert notification.retry_count == 1
        assert email.attempts == 2

    def test_persistent_failure_is_recorded_not_raised(self, email):
        email.configure(should_succeed=False, failure_reason="SMTP relay down")

        notification_id = send_notification(
            "guest@example.com",
            NotificationType.PAYMENT_CONFIRMATION.value,
            {"order_number": "ALN-1-AAAAAAAA"},
        )

        notification = current_domain.repository_for(Notification).get(notification_id)
        assert notification.status == NotificationStatus.FAILED.value
        assert notification.failure_reason == "SMTP relay down"
        assert email.attempts == 2

    def test_unknown_type_returns_none(self):
        assert send_notification("guest@example.com", "Newsletter", {}) is None

    def test_email_failure_does_not_fail_checkout(self, service, checkout_request, email):
        email.configure(should_succeed=False)

        result = service.place_order(checkout_request(payment_method="bank_transfer"))

        assert current_domain.repository_for(Order).get(result.order_id) is not None
        assert email.sent_emails == []
        failed = [n for n in _notifications() if n.status == NotificationStatus.FAILED.value]
        assert len(failed) == 3
