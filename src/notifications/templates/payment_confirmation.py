"""Payment confirmation template — sent once an order is paid."""

from notifications.kinds import NotificationChannel, NotificationType


class PaymentConfirmationTemplate:
    notification_type = NotificationType.PAYMENT_CONFIRMATION.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        total = context.get("total", "0.00")
        currency = context.get("currency", "EUR")
        return {
            "subject": f"Payment received - {order_number}",
            "body": (
                f"Payment of {total} {currency} has been received "
                f"for order {order_number}.\n\n"
                "We are now preparing your order for shipment.\n\n"
                "Thank you for your purchase!"
            ),
        }
